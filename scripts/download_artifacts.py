"""Download pretrained model bundles from GCS before serving.

Run as: python scripts/download_artifacts.py [--modality image]

Required env vars:
    GCS_ARTIFACT_BUCKET  – bucket name (no gs:// prefix)
    MODEL_ARTIFACT_DIR   – local dir to write bundles into (default: artifacts/latest)

Optional env vars:
    MODEL_VERSION        – version to download (default: "latest", which reads each modality's LATEST pointer)

Bucket layout: models/{modality}/{version}/ holding metadata.json plus
model.onnx or model.joblib. A modality with nothing uploaded is skipped;
the server runs it in demo mode.
"""

from __future__ import annotations

import argparse
import os

from google.cloud import storage

MODALITIES = ("image", "audio", "pose")


def resolve_version(bucket: storage.Bucket, modality: str, version: str) -> str:
    """If version is 'latest', read the LATEST pointer file; otherwise pass through."""
    if version.lower() != "latest":
        return version

    pointer_path = f"models/{modality}/LATEST"
    blob = bucket.blob(pointer_path)
    if not blob.exists():
        raise FileNotFoundError(f"LATEST pointer not found at gs://{bucket.name}/{pointer_path}")

    resolved = blob.download_as_text().strip()
    print(f"[{modality}] Resolved LATEST -> {resolved}")
    return resolved


def download_bundle(bucket: storage.Bucket, modality: str, version: str, dest_dir: str) -> int:
    """Download all blobs under models/{modality}/{version}/ into dest_dir/{modality}/."""
    prefix = f"models/{modality}/{version}/"
    blobs = list(bucket.list_blobs(prefix=prefix))
    if not blobs:
        raise FileNotFoundError(f"No bundle found at gs://{bucket.name}/{prefix}")

    local_dir = os.path.join(dest_dir, modality)
    os.makedirs(local_dir, exist_ok=True)

    count = 0
    for blob in blobs:
        # blob.name example: models/image/1.0.0/model.onnx
        filename = blob.name.removeprefix(prefix)
        if not filename or filename.endswith("/"):
            continue
        local_path = os.path.join(local_dir, filename)
        os.makedirs(os.path.dirname(local_path), exist_ok=True)
        blob.download_to_filename(local_path)
        print(f"  {blob.name} -> {local_path}")
        count += 1

    return count


def arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download model bundles from GCS")
    parser.add_argument(
        "--modality", type=str, choices=MODALITIES, default=None,
        help="Download a single modality instead of all of them.",
    )
    return parser


def main() -> None:
    args = arg_parser().parse_args()

    bucket_name = os.environ.get("GCS_ARTIFACT_BUCKET")
    if not bucket_name:
        print("GCS_ARTIFACT_BUCKET not set — skipping artifact download")
        return

    requested = os.environ.get("MODEL_VERSION", "latest")
    dest_dir = os.environ.get("MODEL_ARTIFACT_DIR", "artifacts/latest")

    client = storage.Client.create_anonymous_client()
    bucket = client.bucket(bucket_name)

    modalities = [args.modality] if args.modality else list(MODALITIES)
    for modality in modalities:
        try:
            version = resolve_version(bucket, modality, requested)
            print(f"Downloading {modality} bundle v{version} to {dest_dir}/{modality}/")
            count = download_bundle(bucket, modality, version, dest_dir)
        except FileNotFoundError as e:
            print(f"[{modality}] {e}; it will run in demo mode")
            continue
        print(f"[{modality}] Downloaded {count} file(s)")


if __name__ == "__main__":
    main()

from __future__ import annotations

import posixpath

from bucketstream.infra.storage.client import InvalidPathError, ObjectLocation


def split_path(path: str) -> list[str]:
    """Split a logical ``<bucket>[/<key-segment>]*`` path into segments.

    Raises:
        InvalidPathError: If there is no non-empty bucket segment.
    """
    segments = path.split("/") if path else []
    if not segments or not segments[0]:
        raise InvalidPathError(f"illegal path: {path!r}")
    return segments


def resolve_path(path: str) -> ObjectLocation:
    """Resolve a logical path into its bucket and object key.

    The key is every segment after the bucket joined by ``/``; it is empty
    when the path names only a bucket.
    """
    segments = split_path(path)
    return ObjectLocation(bucket=segments[0], key="/".join(segments[1:]))


def resolve_upload_path(to_path: str, from_path: str) -> ObjectLocation:
    """Resolve an upload destination, defaulting the key to the source name.

    ``resolve_upload_path("mybucket", "/local/dir/report.csv")`` targets
    ``mybucket/report.csv``.
    """
    location = resolve_path(to_path)
    if location.key:
        return location
    file_name = posixpath.basename(from_path.replace("\\", "/"))
    if not file_name:
        raise InvalidPathError(
            f"cannot derive an object key for {to_path!r} from {from_path!r}"
        )
    return ObjectLocation(bucket=location.bucket, key=file_name)

"""Classify URL templates as resource collection or item patterns."""

from pydantic import BaseModel


class PatternInfo(BaseModel):
    is_resource_pattern: bool  # True for item paths (/widgets/{widget})
    custom_method_name: str = ""


def is_placeholder(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def placeholder_name(segment: str) -> str:
    return segment[1:-1]


def split_path(path: str) -> list[str]:
    """Path segments without the leading empty one: "/a/{b}" -> ["a", "{b}"]."""
    return path.split("/")[1:]


def classify_path(path: str) -> PatternInfo | None:
    """Classify `path`, or return None when it is not resource-shaped.

    Segments must alternate literal / placeholder starting with a literal.
    Anything after a ':' is a custom method name.
    """
    custom_method_name = ""
    if ":" in path:
        path, custom_method_name = path.split(":", 1)

    segments = split_path(path)
    for i, segment in enumerate(segments):
        if is_placeholder(segment) != (i % 2 == 1):
            return None

    return PatternInfo(
        is_resource_pattern=len(segments) % 2 == 0,
        custom_method_name=custom_method_name,
    )

DEFAULT_MAJOR_VERSION = 4


def major_version(version: str) -> int:
    """Major component of a dotted producer version (``"5.2.1"`` -> 5)."""
    head = version.strip().split(".")[0]
    try:
        return int(head)
    except ValueError:
        return DEFAULT_MAJOR_VERSION

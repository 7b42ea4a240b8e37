"""
Minimal JAR manifest reader.

Only the main section is read. Header lines are "Name: value"; a line
starting with a single space continues the previous header. The main
section ends at the first blank line.
"""

from typing import Dict, Optional, Union

BUNDLE_VERSION = "Bundle-Version"


def parse_main_attributes(content: Union[str, bytes]) -> Dict[str, str]:
    """
    Parse the main section of a manifest.

    Malformed lines are skipped.

    Args:
        content: Manifest text or bytes (UTF-8)

    Returns:
        Dict of header name to value
    """
    if isinstance(content, bytes):
        content = content.decode('utf-8', errors='replace')
    if content.startswith('\ufeff'):
        content = content[1:]

    attributes: Dict[str, str] = {}
    current: Optional[str] = None
    for line in content.splitlines():
        if not line.strip():
            break
        if line.startswith(' '):
            if current is not None:
                attributes[current] += line[1:]
            continue

        name, sep, value = line.partition(':')
        if not sep or not name.strip():
            current = None
            continue
        current = name.strip()
        attributes[current] = value.strip()

    return attributes


def read_attribute(content: Union[str, bytes], name: str = BUNDLE_VERSION) -> Optional[str]:
    """Value of one main attribute, None if absent or empty."""
    value = parse_main_attributes(content).get(name)
    return value.strip() if value else None

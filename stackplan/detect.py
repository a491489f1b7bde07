import json
import os

import yaml

# Loader that tolerates !Ref / !GetAtt and any other tag without raising,
# so detect_format can peek at declaration files.
class _TagTolerantLoader(yaml.SafeLoader):
    pass

_TagTolerantLoader.add_multi_constructor(
    "!",
    lambda loader, suffix, node: loader.construct_yaml_str(node)
    if isinstance(node, yaml.ScalarNode) else None,
)


def _looks_like_declarations(doc) -> bool:
    if not isinstance(doc, dict):
        return False
    resources = doc.get("Resources")
    return isinstance(resources, dict) and any(
        isinstance(v, dict) and "Type" in v for v in resources.values()
    )


def detect_format(filepath: str) -> str:
    """
    Return 'yaml' or 'json' for a declaration file, 'unknown' otherwise.
    """
    _, ext = os.path.splitext(filepath.lower())

    if ext == ".json":
        try:
            with open(filepath, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            return "unknown"
        return "json" if _looks_like_declarations(data) else "unknown"

    if ext in (".yaml", ".yml"):
        try:
            with open(filepath, encoding="utf-8") as fh:
                data = yaml.load(fh, Loader=_TagTolerantLoader)
        except (OSError, ValueError, yaml.YAMLError):
            return "unknown"
        return "yaml" if _looks_like_declarations(data) else "unknown"

    return "unknown"

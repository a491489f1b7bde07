"""
Declaration file loader.

Files have a top-level ``Resources`` mapping::

    Resources:
      Zone:
        Type: AWS::Route53::HostedZone
        RemovalPolicy: retain
        Properties:
          zone_name: example.com
      Cert:
        Type: AWS::CertificateManager::Certificate
        Properties:
          domain_name: example.com
          validation_zone: !Ref Zone

Property keys are the field names of the matching declaration class.
References are written ``!Ref Name`` / ``!GetAtt Name.Attr`` in YAML, or
``{"Ref": "Name"}`` / ``{"Fn::GetAtt": ["Name", "Attr"]}`` in either format.
"""
import json
import os
from typing import Any, Iterable, List

import yaml
from rich.console import Console

from stackplan.detect import detect_format
from stackplan.errors import DeclarationError
from stackplan.models.declaration import RESOURCE_TYPES, Reference, RemovalPolicy, ResourceDeclaration

console = Console(stderr=True)


# ------------------------------------------------------------------ YAML loader
# !Ref and !GetAtt become Reference objects directly. Other tags are rejected
# by SafeLoader with a ConstructorError.

class _DeclarationLoader(yaml.SafeLoader):
    pass


def _ref_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> Reference:
    if not isinstance(node, yaml.ScalarNode):
        raise yaml.constructor.ConstructorError(
            None, None, "!Ref expects a logical name", node.start_mark
        )
    return Reference(loader.construct_scalar(node))


def _getatt_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> Reference:
    if isinstance(node, yaml.ScalarNode):
        target, _, attribute = loader.construct_scalar(node).partition(".")
    elif isinstance(node, yaml.SequenceNode):
        parts = loader.construct_sequence(node)
        if len(parts) != 2:
            raise yaml.constructor.ConstructorError(
                None, None, "!GetAtt expects [Name, Attribute]", node.start_mark
            )
        target, attribute = parts
    else:
        raise yaml.constructor.ConstructorError(
            None, None, "!GetAtt expects Name.Attribute", node.start_mark
        )
    if not target or not attribute:
        raise yaml.constructor.ConstructorError(
            None, None, "!GetAtt expects Name.Attribute", node.start_mark
        )
    return Reference(str(target), str(attribute))


_DeclarationLoader.add_constructor("!Ref", _ref_constructor)
_DeclarationLoader.add_constructor("!GetAtt", _getatt_constructor)


def _resolve_intrinsics(val: Any) -> Any:
    """Turn long-form {"Ref": ...} / {"Fn::GetAtt": [...]} mappings into References."""
    if isinstance(val, dict):
        if len(val) == 1 and isinstance(val.get("Ref"), str):
            return Reference(val["Ref"])
        if len(val) == 1 and "Fn::GetAtt" in val:
            att = val["Fn::GetAtt"]
            if isinstance(att, str):
                att = att.split(".", 1)
            if isinstance(att, list) and len(att) == 2:
                return Reference(str(att[0]), str(att[1]))
        return {k: _resolve_intrinsics(v) for k, v in val.items()}
    if isinstance(val, list):
        return [_resolve_intrinsics(v) for v in val]
    return val


def _read_document(filepath: str) -> Any:
    _, ext = os.path.splitext(filepath.lower())
    try:
        with open(filepath, encoding="utf-8") as fh:
            if ext == ".json":
                return json.load(fh)
            return yaml.load(fh, Loader=_DeclarationLoader)
    except OSError as exc:
        raise DeclarationError(f"cannot read file: {exc.strerror or exc}", source=filepath) from exc
    except (ValueError, yaml.YAMLError) as exc:
        raise DeclarationError(f"invalid document: {exc}", source=filepath) from exc


def _parse_removal_policy(raw: Any, filepath: str, name: str):
    if raw is None:
        return None
    try:
        return RemovalPolicy(str(raw).lower())
    except ValueError:
        allowed = ", ".join(p.value for p in RemovalPolicy)
        raise DeclarationError(
            f"invalid RemovalPolicy '{raw}' (expected one of: {allowed})",
            source=filepath, resource=name,
        ) from None


def parse_document(data: Any, source: str = "<memory>") -> List[ResourceDeclaration]:
    """Build declarations from an already-loaded document, keeping file order."""
    if not isinstance(data, dict) or not isinstance(data.get("Resources"), dict):
        raise DeclarationError("expected a top-level 'Resources' mapping", source=source)

    data = _resolve_intrinsics(data)
    declarations: List[ResourceDeclaration] = []

    for logical_name, definition in data["Resources"].items():
        name = str(logical_name)
        if not isinstance(definition, dict):
            raise DeclarationError("definition must be a mapping", source=source, resource=name)

        unknown_keys = sorted(set(definition) - {"Type", "Properties", "RemovalPolicy"})
        if unknown_keys:
            raise DeclarationError(
                "unknown keys: " + ", ".join(unknown_keys), source=source, resource=name
            )

        resource_type = definition.get("Type", "")
        cls = RESOURCE_TYPES.get(resource_type)
        if cls is None:
            raise DeclarationError(
                f"unknown resource type '{resource_type}'", source=source, resource=name
            )

        properties = definition.get("Properties") or {}
        if not isinstance(properties, dict):
            raise DeclarationError("Properties must be a mapping", source=source, resource=name)

        policy = _parse_removal_policy(definition.get("RemovalPolicy"), source, name)
        try:
            declarations.append(cls.from_properties(name, properties, policy))
        except DeclarationError as exc:
            raise DeclarationError(exc.message, source=source, resource=exc.resource) from exc

    return declarations


def parse_file(filepath: str) -> List[ResourceDeclaration]:
    return parse_document(_read_document(filepath), source=filepath)


def parse_directory(path: str) -> List[ResourceDeclaration]:
    """Parse every declaration file under path, walking in sorted order."""
    declarations: List[ResourceDeclaration] = []

    for root, dirs, files in os.walk(path):
        dirs.sort()
        for fname in sorted(files):
            fpath = os.path.join(root, fname)
            if detect_format(fpath) == "unknown":
                console.print(f"[dim]Skipping unsupported file:[/dim] {fpath}")
                continue
            declarations.extend(parse_file(fpath))

    return declarations


def load_paths(paths: Iterable[str]) -> List[ResourceDeclaration]:
    """
    Load files and directories in the order given. Explicit files are always
    parsed; directories only contribute recognised declaration files.
    """
    declarations: List[ResourceDeclaration] = []
    for p in paths:
        if os.path.isfile(p):
            declarations.extend(parse_file(p))
        elif os.path.isdir(p):
            declarations.extend(parse_directory(p))
        else:
            raise DeclarationError("path does not exist", source=p)
    return declarations

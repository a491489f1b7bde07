from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union

from stackplan.errors import DeclarationError


class RemovalPolicy(str, Enum):
    RETAIN   = "retain"
    DESTROY  = "destroy"
    SNAPSHOT = "snapshot"


@dataclass(frozen=True)
class Reference:
    target: str                       # logical name of the referenced declaration
    attribute: Optional[str] = None   # output attribute, e.g. "Arn"; None means the resource itself

    def to_dict(self) -> dict:
        if self.attribute:
            return {"Fn::GetAtt": [self.target, self.attribute]}
        return {"Ref": self.target}


RefOr = Union[Reference, str]


def ref(target: Union["ResourceDeclaration", str], attribute: Optional[str] = None) -> Reference:
    """Build a Reference to a declaration or to a logical name."""
    name = target.name if isinstance(target, ResourceDeclaration) else target
    return Reference(name, attribute)


def _walk_refs(val: Any, refs: List[Reference]) -> None:
    """Collect References from a property value, depth first, in field order."""
    if isinstance(val, Reference):
        refs.append(val)
    elif isinstance(val, dict):
        for v in val.values():
            _walk_refs(v, refs)
    elif isinstance(val, (list, tuple)):
        for item in val:
            _walk_refs(item, refs)
    elif is_dataclass(val) and not isinstance(val, type):
        for f in fields(val):
            _walk_refs(getattr(val, f.name), refs)


def _freeze(val: Any) -> Any:
    if isinstance(val, list):
        return tuple(_freeze(v) for v in val)
    if isinstance(val, dict):
        return {k: _freeze(v) for k, v in val.items()}
    return val


def to_plain(val: Any) -> Any:
    """Convert a property value into JSON-serialisable builtins."""
    if isinstance(val, Reference):
        return val.to_dict()
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, dict):
        return {k: to_plain(v) for k, v in val.items()}
    if isinstance(val, (list, tuple)):
        return [to_plain(v) for v in val]
    if is_dataclass(val) and not isinstance(val, type):
        return {
            f.name: to_plain(getattr(val, f.name))
            for f in fields(val)
            if getattr(val, f.name) is not None
        }
    return val


_META_FIELDS = ("name", "removal_policy")


@dataclass(frozen=True, kw_only=True)
class ResourceDeclaration:
    resource_type: ClassVar[str] = ""

    name: str
    removal_policy: Optional[RemovalPolicy] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.resource_type}.{self.name}"

    @property
    def properties(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _META_FIELDS
        }

    @property
    def references(self) -> List[Reference]:
        """References in discovery order, first occurrence of each target kept."""
        found: List[Reference] = []
        _walk_refs(self.properties, found)
        seen = set()
        unique = []
        for r in found:
            if r.target not in seen:
                seen.add(r.target)
                unique.append(r)
        return unique

    @classmethod
    def property_names(cls) -> List[str]:
        return [f.name for f in fields(cls) if f.init and f.name not in _META_FIELDS]

    @classmethod
    def required_properties(cls) -> List[str]:
        return [
            f.name
            for f in fields(cls)
            if f.init
            and f.name not in _META_FIELDS
            and f.default is MISSING
            and f.default_factory is MISSING
        ]

    @classmethod
    def from_properties(
        cls,
        name: str,
        properties: Dict[str, Any],
        removal_policy: Optional[RemovalPolicy] = None,
    ) -> "ResourceDeclaration":
        """Build a declaration from a loose property mapping, rejecting unknown keys."""
        known = set(cls.property_names())
        unknown = [k for k in properties if k not in known]
        if unknown:
            raise DeclarationError(
                f"unknown propert{'y' if len(unknown) == 1 else 'ies'} for {cls.resource_type}: "
                + ", ".join(unknown),
                resource=name,
            )
        missing = [k for k in cls.required_properties() if k not in properties]
        if missing:
            raise DeclarationError(
                f"missing required propert{'y' if len(missing) == 1 else 'ies'}: " + ", ".join(missing),
                resource=name,
            )
        kwargs = {k: _freeze(v) for k, v in properties.items()}
        try:
            return cls(name=name, removal_policy=removal_policy, **kwargs)
        except (TypeError, ValueError) as exc:
            raise DeclarationError(str(exc), resource=name) from exc


@dataclass(frozen=True, kw_only=True)
class GenericResource(ResourceDeclaration):
    """Declaration with a free-form type tag and property bag."""

    type_name: str
    props: Dict[str, Any] = field(default_factory=dict)

    @property
    def resource_type(self) -> str:  # type: ignore[override]
        return self.type_name

    @property
    def properties(self) -> Dict[str, Any]:
        return dict(self.props)


# ------------------------------------------------------------------ DNS

_RECORD_TYPES = ("A", "AAAA", "CNAME", "MX", "NS", "TXT", "SOA", "CAA", "SRV")


@dataclass(frozen=True, kw_only=True)
class HostedZone(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::Route53::HostedZone"

    zone_name: str
    comment: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class HostedZoneLookup(ResourceDeclaration):
    """An existing zone (e.g. created on domain registration), looked up rather than created."""

    resource_type: ClassVar[str] = "AWS::Route53::HostedZone::Lookup"

    domain_name: str


@dataclass(frozen=True, kw_only=True)
class RecordSet(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::Route53::RecordSet"

    zone: RefOr
    record_name: str
    record_type: str
    values: Tuple[Any, ...] = ()
    ttl: int = 1800

    def __post_init__(self):
        if not isinstance(self.record_type, Reference) and self.record_type not in _RECORD_TYPES:
            raise ValueError(f"unsupported record_type '{self.record_type}'")


@dataclass(frozen=True, kw_only=True)
class AliasRecord(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::Route53::RecordSet::Alias"

    zone: RefOr
    record_name: str
    record_type: str
    target: RefOr

    def __post_init__(self):
        if not isinstance(self.record_type, Reference) and self.record_type not in ("A", "AAAA"):
            raise ValueError(f"alias records must be A or AAAA, got '{self.record_type}'")


# ------------------------------------------------------------------ Storage

@dataclass(frozen=True, kw_only=True)
class Bucket(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::S3::Bucket"

    bucket_name: str
    website_index_document: Optional[str] = None
    website_error_document: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class BucketDeployment(ResourceDeclaration):
    resource_type: ClassVar[str] = "Custom::CDKBucketDeployment"

    sources: Tuple[str, ...]
    destination_bucket: RefOr


@dataclass(frozen=True, kw_only=True)
class BucketPolicy(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::S3::BucketPolicy"

    bucket: RefOr
    actions: Tuple[str, ...]
    principal: RefOr
    object_pattern: str = "*"


# ------------------------------------------------------------------ TLS / CDN

@dataclass(frozen=True, kw_only=True)
class Certificate(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::CertificateManager::Certificate"

    domain_name: str
    subject_alternative_names: Tuple[str, ...] = ()
    certificate_name: Optional[str] = None
    validation_zone: Optional[RefOr] = None  # DNS validation when set


@dataclass(frozen=True, kw_only=True)
class OriginAccessIdentity(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::CloudFront::CloudFrontOriginAccessIdentity"

    comment: str = ""


@dataclass(frozen=True, kw_only=True)
class Distribution(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::CloudFront::Distribution"

    origin_bucket: RefOr
    origin_access_identity: Optional[RefOr] = None
    certificate: Optional[RefOr] = None
    aliases: Tuple[str, ...] = ()
    viewer_protocol_policy: str = "redirect-to-https"
    default_root_object: Optional[str] = None

    def __post_init__(self):
        policy = self.viewer_protocol_policy
        if not isinstance(policy, Reference) and policy not in ("allow-all", "https-only", "redirect-to-https"):
            raise ValueError(f"unsupported viewer_protocol_policy '{policy}'")
        if self.aliases and self.certificate is None:
            raise ValueError("aliases require a certificate")


# ------------------------------------------------------------------ Cost

@dataclass(frozen=True)
class BudgetNotification:
    notification_type: str            # "ACTUAL" or "FORECASTED"
    threshold: float
    comparison_operator: str = "GREATER_THAN"
    threshold_type: str = "PERCENTAGE"
    subscribers: Tuple[str, ...] = ()  # e-mail addresses


@dataclass(frozen=True, kw_only=True)
class Budget(ResourceDeclaration):
    resource_type: ClassVar[str] = "AWS::Budgets::Budget"

    budget_name: str
    amount: float
    unit: str = "USD"
    budget_type: str = "COST"
    time_unit: str = "MONTHLY"
    notifications: Tuple[BudgetNotification, ...] = ()

    @classmethod
    def from_properties(cls, name, properties, removal_policy=None):
        props = dict(properties)
        raw = props.get("notifications") or []
        notes = []
        for item in raw:
            if isinstance(item, BudgetNotification):
                notes.append(item)
                continue
            if not isinstance(item, dict):
                raise DeclarationError("notifications must be mappings", resource=name)
            try:
                notes.append(BudgetNotification(**_freeze(item)))
            except TypeError as exc:
                raise DeclarationError(f"bad notification: {exc}", resource=name) from exc
        if "notifications" in props:
            props["notifications"] = notes
        return super().from_properties(name, props, removal_policy)


RESOURCE_TYPES: Dict[str, Type[ResourceDeclaration]] = {
    cls.resource_type: cls
    for cls in (
        HostedZone,
        HostedZoneLookup,
        RecordSet,
        AliasRecord,
        Bucket,
        BucketDeployment,
        BucketPolicy,
        Certificate,
        OriginAccessIdentity,
        Distribution,
        Budget,
    )
}

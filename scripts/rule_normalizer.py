"""
Azure NSG Platform - Rule Normalizer

Translates the compact rule descriptions used in NSG definition files into the
strict record shape the Azure security rule API expects.

Two entry points, one per rule origin:
    normalize_predefined_rule - a catalog reference plus caller overrides
    normalize_custom_rule     - a fully user-described rule

Port patterns are parsed once into a PortSpec (Single | Range | ListOf) and only
translated to the provider's *PortRange / *PortRanges pair when the record is
built. Normalization is pure: no I/O, no shared state.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import rule_catalog

logger = logging.getLogger(__name__)

MIN_PRIORITY = 100
MAX_PRIORITY = 4096

DEFAULT_DIRECTION = "Inbound"
DEFAULT_ACCESS = "Allow"
DEFAULT_PROTOCOL = "*"
ANY = "*"


class InvalidPriority(ValueError):
    """Raised when a rule priority falls outside [MIN_PRIORITY, MAX_PRIORITY]"""

    def __init__(self, priority: Any, rule_name: Optional[str] = None):
        self.priority = priority
        self.rule_name = rule_name
        where = f" (rule '{rule_name}')" if rule_name else ""
        super().__init__(f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {priority!r}{where}")


class ConfigError(ValueError):
    """Raised when an NSG definition is structurally unusable"""


# ---------------------------------------------------------------------------
# Port patterns
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Single:
    """One port, or '*'"""
    value: str

    @property
    def pattern(self) -> str:
        return self.value


@dataclass(frozen=True)
class Range:
    """A hyphenated port range such as 49152-65535"""
    low: str
    high: str

    @property
    def pattern(self) -> str:
        return f"{self.low}-{self.high}"


@dataclass(frozen=True)
class ListOf:
    """A comma-separated list of ports and/or ranges"""
    values: Tuple[str, ...]

    @property
    def pattern(self) -> str:
        return ",".join(self.values)


PortSpec = Union[Single, Range, ListOf]


def parse_port_pattern(pattern: Optional[str]) -> PortSpec:
    """Classify a port pattern string. Absent, empty and '*' all mean any port."""
    if not pattern or pattern == ANY:
        return Single(ANY)
    if "," in pattern:
        return ListOf(tuple(p.strip() for p in pattern.split(",")))
    if "-" in pattern:
        low, _, high = pattern.partition("-")
        return Range(low.strip(), high.strip())
    return Single(pattern)


def split_port_fields(spec: PortSpec) -> Tuple[Optional[str], Optional[List[str]]]:
    """Map a user-supplied port spec to (portRange, portRanges).

    Only comma lists use the plural field; single ports and ranges are passed
    through as one value.
    """
    if isinstance(spec, ListOf):
        return None, list(spec.values)
    return spec.pattern, None


def template_port_fields(spec: PortSpec) -> Tuple[Optional[str], Optional[List[str]]]:
    """Map a catalog destination port to (portRange, portRanges).

    Anything that is not a single port is passed as a one-element list holding
    the whole pattern.
    """
    if isinstance(spec, Single):
        return spec.value, None
    return None, [spec.pattern]


# ---------------------------------------------------------------------------
# Priorities
# ---------------------------------------------------------------------------

def validate_priority(priority: Any, rule_name: Optional[str] = None) -> int:
    """Return priority unchanged if it is an integer in range, else raise InvalidPriority"""
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InvalidPriority(priority, rule_name)
    if priority < MIN_PRIORITY or priority > MAX_PRIORITY:
        raise InvalidPriority(priority, rule_name)
    return priority


def default_priority(index: int, total_count: int) -> int:
    """Priority for the index-th predefined rule when none is given.

    Rules fill downward from the top of the allowed range in list order, so a
    list of n rules gets 4096-n ... 4095.
    """
    return MAX_PRIORITY - total_count + index


# ---------------------------------------------------------------------------
# Raw inputs
# ---------------------------------------------------------------------------

def optional_list(data: Dict[str, Any], key: str) -> Optional[List[str]]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(value)


def optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return None if value is None else str(value)


@dataclass(frozen=True)
class RawPredefinedRuleRef:
    """A predefined rule entry as written in the NSG definition"""
    name: str
    priority: Optional[int] = None
    source_port_range: Optional[str] = None
    source_application_security_group_ids: Optional[List[str]] = None
    destination_application_security_group_ids: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawPredefinedRuleRef":
        if not isinstance(data, dict) or "name" not in data:
            raise ConfigError(f"Predefined rule entry must be a mapping with a 'name', got {data!r}")
        return cls(
            name=str(data["name"]),
            priority=data.get("priority"),
            source_port_range=optional_str(data, "sourcePortRange"),
            source_application_security_group_ids=optional_list(data, "sourceApplicationSecurityGroupIds"),
            destination_application_security_group_ids=optional_list(data, "destinationApplicationSecurityGroupIds"),
        )


@dataclass(frozen=True)
class RawCustomRule:
    """A custom rule entry as written in the NSG definition"""
    name: str
    priority: int
    direction: Optional[str] = None
    access: Optional[str] = None
    protocol: Optional[str] = None
    source_port_range: Optional[str] = None
    destination_port_range: Optional[str] = None
    source_address_prefix: Optional[str] = None
    source_address_prefixes: Optional[List[str]] = None
    destination_address_prefix: Optional[str] = None
    destination_address_prefixes: Optional[List[str]] = None
    description: Optional[str] = None
    source_application_security_group_ids: Optional[List[str]] = None
    destination_application_security_group_ids: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawCustomRule":
        if not isinstance(data, dict):
            raise ConfigError(f"Custom rule entry must be a mapping, got {type(data).__name__}")
        for required in ("name", "priority"):
            if required not in data:
                raise ConfigError(f"Custom rule {data.get('name', '<unnamed>')!r} is missing required field '{required}'")
        return cls(
            name=str(data["name"]),
            priority=data["priority"],
            direction=optional_str(data, "direction"),
            access=optional_str(data, "access"),
            protocol=optional_str(data, "protocol"),
            source_port_range=optional_str(data, "sourcePortRange"),
            destination_port_range=optional_str(data, "destinationPortRange"),
            source_address_prefix=optional_str(data, "sourceAddressPrefix"),
            source_address_prefixes=optional_list(data, "sourceAddressPrefixes"),
            destination_address_prefix=optional_str(data, "destinationAddressPrefix"),
            destination_address_prefixes=optional_list(data, "destinationAddressPrefixes"),
            description=optional_str(data, "description"),
            source_application_security_group_ids=optional_list(data, "sourceApplicationSecurityGroupIds"),
            destination_application_security_group_ids=optional_list(data, "destinationApplicationSecurityGroupIds"),
        )


@dataclass(frozen=True)
class GroupAddressDefaults:
    """Group-wide address prefixes applied to every predefined rule"""
    source_address_prefix: Optional[List[str]] = None
    source_address_prefixes: Optional[List[str]] = None
    destination_address_prefix: Optional[List[str]] = None
    destination_address_prefixes: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Normalized output
# ---------------------------------------------------------------------------

# snake_case attribute -> provider field name
_PROVIDER_FIELDS = {
    "security_rule_name": "securityRuleName",
    "priority": "priority",
    "direction": "direction",
    "access": "access",
    "protocol": "protocol",
    "source_port_range": "sourcePortRange",
    "source_port_ranges": "sourcePortRanges",
    "destination_port_range": "destinationPortRange",
    "destination_port_ranges": "destinationPortRanges",
    "source_address_prefix": "sourceAddressPrefix",
    "source_address_prefixes": "sourceAddressPrefixes",
    "destination_address_prefix": "destinationAddressPrefix",
    "destination_address_prefixes": "destinationAddressPrefixes",
    "source_application_security_groups": "sourceApplicationSecurityGroups",
    "destination_application_security_groups": "destinationApplicationSecurityGroups",
    "description": "description",
}


@dataclass(frozen=True)
class NormalizedRule:
    """A security rule ready to be created"""
    security_rule_name: str
    priority: int
    direction: str
    access: str
    protocol: str
    description: str
    source_port_range: Optional[str] = None
    source_port_ranges: Optional[List[str]] = None
    destination_port_range: Optional[str] = None
    destination_port_ranges: Optional[List[str]] = None
    source_address_prefix: Optional[str] = None
    source_address_prefixes: Optional[List[str]] = None
    destination_address_prefix: Optional[str] = None
    destination_address_prefixes: Optional[List[str]] = None
    source_application_security_groups: Optional[List[Dict[str, str]]] = None
    destination_application_security_groups: Optional[List[Dict[str, str]]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Provider-shaped dict with camelCase keys; unset fields are omitted"""
        result = {}
        for attr, key in _PROVIDER_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        return result


def _wrap_asg_ids(ids: Optional[List[str]]) -> Optional[List[Dict[str, str]]]:
    if ids is None:
        return None
    return [{"id": asg_id} for asg_id in ids]


def normalize_predefined_rule(ref: RawPredefinedRuleRef, index: int, total_count: int,
                              defaults: Optional[GroupAddressDefaults] = None) -> Optional[NormalizedRule]:
    """Normalize one predefined rule reference.

    Returns None when ref.name is not in the catalog; the caller is expected to
    record the skip. Raises InvalidPriority for an out-of-range priority.
    """
    template = rule_catalog.lookup(ref.name)
    if template is None:
        logger.warning(f"Predefined rule '{ref.name}' (index {index}) is not in the catalog, skipping")
        return None

    defaults = defaults or GroupAddressDefaults()
    priority = ref.priority if ref.priority is not None else default_priority(index, total_count)
    validate_priority(priority, ref.name)

    source_port_range, source_port_ranges = split_port_fields(parse_port_pattern(ref.source_port_range))
    destination_port_range, destination_port_ranges = template_port_fields(
        parse_port_pattern(template.destination_port_range))

    return NormalizedRule(
        security_rule_name=ref.name,
        priority=priority,
        direction=template.direction,
        access=template.access,
        protocol=template.protocol,
        description=template.description,
        source_port_range=source_port_range,
        source_port_ranges=source_port_ranges,
        destination_port_range=destination_port_range,
        destination_port_ranges=destination_port_ranges,
        source_address_prefix=",".join(defaults.source_address_prefix) if defaults.source_address_prefix else ANY,
        source_address_prefixes=defaults.source_address_prefixes,
        destination_address_prefix=(",".join(defaults.destination_address_prefix)
                                    if defaults.destination_address_prefix else ANY),
        destination_address_prefixes=defaults.destination_address_prefixes,
        source_application_security_groups=_wrap_asg_ids(ref.source_application_security_group_ids),
        destination_application_security_groups=_wrap_asg_ids(ref.destination_application_security_group_ids),
    )


def normalize_custom_rule(rule: RawCustomRule, index: int) -> NormalizedRule:
    """Normalize one custom rule. Raises InvalidPriority for an out-of-range priority."""
    validate_priority(rule.priority, rule.name or f"customRules[{index}]")

    source_port_range, source_port_ranges = split_port_fields(parse_port_pattern(rule.source_port_range))
    if rule.destination_port_range:
        destination_port_range, destination_port_ranges = split_port_fields(
            parse_port_pattern(rule.destination_port_range))
    else:
        destination_port_range, destination_port_ranges = None, None

    return NormalizedRule(
        security_rule_name=rule.name,
        priority=rule.priority,
        direction=rule.direction or DEFAULT_DIRECTION,
        access=rule.access or DEFAULT_ACCESS,
        protocol=rule.protocol or DEFAULT_PROTOCOL,
        description=rule.description or f"Security rule for {rule.name}",
        source_port_range=source_port_range,
        source_port_ranges=source_port_ranges,
        destination_port_range=destination_port_range,
        destination_port_ranges=destination_port_ranges,
        source_address_prefix=rule.source_address_prefix or ANY,
        source_address_prefixes=rule.source_address_prefixes,
        destination_address_prefix=rule.destination_address_prefix or ANY,
        destination_address_prefixes=rule.destination_address_prefixes,
        source_application_security_groups=_wrap_asg_ids(rule.source_application_security_group_ids),
        destination_application_security_groups=_wrap_asg_ids(rule.destination_application_security_group_ids),
    )

"""
Azure NSG Platform - Network Security Group Component

Turns one NSG definition (resource group, optional name/location, predefined
and custom rules, group-wide address defaults) into a network security group
plus one security rule per normalized entry.

Provisioning happens in two steps:
    plan()      - normalize every rule, no remote calls
    provision() - create the group, then each planned rule, through a provider

A provider is any object exposing:
    create_network_security_group(resource_group_name, location, security_group_name) -> SecurityGroupRef
    create_security_rule(resource_name, resource_group_name, network_security_group_name, rule) -> dict

Rules are processed predefined first, then custom, each in list order. Remote
resource names are '{component}-{origin}-{index}', so reordering a list renames
its rules.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from rule_normalizer import (
    ConfigError, GroupAddressDefaults, NormalizedRule, RawCustomRule, RawPredefinedRuleRef,
    normalize_custom_rule, normalize_predefined_rule, optional_list,
)

logger = logging.getLogger(__name__)

ORIGIN_PREDEFINED = "predefined"
ORIGIN_CUSTOM = "custom"

# Top-level keys recognized in an NSG definition
KNOWN_KEYS = {
    'resourceGroupName', 'securityGroupName', 'location', 'customRules', 'predefinedRules',
    'sourceAddressPrefix', 'sourceAddressPrefixes', 'destinationAddressPrefix', 'destinationAddressPrefixes',
}


@dataclass(frozen=True)
class SecurityGroupRef:
    """Identity of a created network security group"""
    id: str
    name: str


def _check_unique_names(names: List[str], collection: str):
    seen = set()
    for i, name in enumerate(names):
        if name in seen:
            raise ConfigError(f"Duplicate rule name '{name}' in {collection}[{i}]: names must be unique within {collection}")
        seen.add(name)


@dataclass(frozen=True)
class NetworkSecurityGroupArgs:
    """Inputs for one NetworkSecurityGroup instance"""
    resource_group_name: str
    security_group_name: Optional[str] = None
    location: Optional[str] = None
    custom_rules: Tuple[RawCustomRule, ...] = ()
    predefined_rules: Tuple[RawPredefinedRuleRef, ...] = ()
    address_defaults: GroupAddressDefaults = field(default_factory=GroupAddressDefaults)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkSecurityGroupArgs":
        """Build args from a parsed NSG definition (camelCase keys)"""
        if not isinstance(data, dict):
            raise ConfigError(f"NSG definition must be a mapping, got {type(data).__name__}")
        if not data.get('resourceGroupName'):
            raise ConfigError("Required field 'resourceGroupName' is missing")

        collections = {}
        for key in ('customRules', 'predefinedRules'):
            value = data.get(key) or []
            if not isinstance(value, list):
                raise ConfigError(f"'{key}' must be a list, got {type(value).__name__}")
            collections[key] = value

        custom_rules = tuple(RawCustomRule.from_dict(r) for r in collections['customRules'])
        predefined_rules = tuple(RawPredefinedRuleRef.from_dict(r) for r in collections['predefinedRules'])
        _check_unique_names([r.name for r in custom_rules], 'customRules')
        _check_unique_names([r.name for r in predefined_rules], 'predefinedRules')

        return cls(
            resource_group_name=str(data['resourceGroupName']),
            security_group_name=data.get('securityGroupName'),
            location=data.get('location'),
            custom_rules=custom_rules,
            predefined_rules=predefined_rules,
            address_defaults=GroupAddressDefaults(
                source_address_prefix=optional_list(data, 'sourceAddressPrefix'),
                source_address_prefixes=optional_list(data, 'sourceAddressPrefixes'),
                destination_address_prefix=optional_list(data, 'destinationAddressPrefix'),
                destination_address_prefixes=optional_list(data, 'destinationAddressPrefixes'),
            ),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "NetworkSecurityGroupArgs":
        """Load args from an NSG definition YAML file"""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"NSG definition not found: {config_path}")
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
        if not data:
            raise ConfigError(f"NSG definition {config_path} is empty")
        return cls.from_dict(data)


@dataclass(frozen=True)
class PlannedRule:
    """A normalized rule and the remote resource name it will be created under"""
    resource_name: str
    origin: str
    index: int
    rule: NormalizedRule

    def to_dict(self) -> Dict[str, Any]:
        return {
            'resource_name': self.resource_name,
            'origin': self.origin,
            'index': self.index,
            'rule': self.rule.to_dict(),
        }


@dataclass(frozen=True)
class SkippedRule:
    """A predefined rule reference that did not resolve in the catalog"""
    index: int
    name: str
    reason: str


@dataclass
class ProvisioningPlan:
    """Everything provision() will create, computed without remote calls"""
    component_name: str
    resource_group_name: str
    security_group_name: str
    location: Optional[str]
    rules: List[PlannedRule] = field(default_factory=list)
    skipped: List[SkippedRule] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def rules_from(self, origin: str) -> List[PlannedRule]:
        return [r for r in self.rules if r.origin == origin]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'component_name': self.component_name,
            'resource_group_name': self.resource_group_name,
            'security_group_name': self.security_group_name,
            'location': self.location,
            'rules': [r.to_dict() for r in self.rules],
            'skipped': [{'index': s.index, 'name': s.name, 'reason': s.reason} for s in self.skipped],
        }


class NetworkSecurityGroup:
    """A network security group and its predefined and custom rules"""

    def __init__(self, name: str, args: NetworkSecurityGroupArgs, provider: Any = None):
        self.name = name
        self.args = args
        self.provider = provider
        self.security_group: Optional[SecurityGroupRef] = None

    @property
    def security_group_name(self) -> str:
        return self.args.security_group_name or self.name

    def _resource_name(self, origin: str, index: int) -> str:
        return f"{self.name}-{origin}-{index}"

    def plan(self) -> ProvisioningPlan:
        """Normalize every rule. Raises InvalidPriority on the first bad priority."""
        plan = ProvisioningPlan(
            component_name=self.name,
            resource_group_name=self.args.resource_group_name,
            security_group_name=self.security_group_name,
            location=self.args.location,
        )

        total = len(self.args.predefined_rules)
        for index, ref in enumerate(self.args.predefined_rules):
            rule = normalize_predefined_rule(ref, index, total, self.args.address_defaults)
            if rule is None:
                plan.skipped.append(SkippedRule(
                    index=index,
                    name=ref.name,
                    reason=f"'{ref.name}' is not a known predefined rule",
                ))
                continue
            plan.rules.append(PlannedRule(
                resource_name=self._resource_name(ORIGIN_PREDEFINED, index),
                origin=ORIGIN_PREDEFINED,
                index=index,
                rule=rule,
            ))

        for index, raw in enumerate(self.args.custom_rules):
            plan.rules.append(PlannedRule(
                resource_name=self._resource_name(ORIGIN_CUSTOM, index),
                origin=ORIGIN_CUSTOM,
                index=index,
                rule=normalize_custom_rule(raw, index),
            ))

        if plan.skipped:
            logger.warning(f"{self.name}: {plan.skipped_count} predefined rule(s) skipped: "
                           f"{', '.join(s.name for s in plan.skipped)}")
        return plan

    def provision(self, plan: Optional[ProvisioningPlan] = None) -> Dict[str, Any]:
        """Create the group and its rules, returning the component outputs.

        Every rule is normalized before the first remote call, so an invalid
        priority aborts without creating anything. Provider errors propagate.
        """
        if self.provider is None:
            raise RuntimeError("Cannot provision without a provider")

        plan = plan or self.plan()

        self.security_group = self.provider.create_network_security_group(
            resource_group_name=self.args.resource_group_name,
            location=self.args.location,
            security_group_name=self.security_group_name,
        )
        logger.info(f"Network security group {self.security_group.name} ready ({self.security_group.id})")

        created = []
        for planned in plan.rules:
            self.provider.create_security_rule(
                resource_name=planned.resource_name,
                resource_group_name=self.args.resource_group_name,
                network_security_group_name=self.security_group.name,
                rule=planned.rule,
            )
            created.append(planned.resource_name)

        return {
            'networkSecurityGroupId': self.security_group.id,
            'networkSecurityGroupName': self.security_group.name,
            'createdRules': created,
            'skippedRules': [s.name for s in plan.skipped],
        }

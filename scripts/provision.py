#!/usr/bin/env python3
"""
Azure NSG Platform - Provisioning

Creates an Azure network security group and its security rules from an NSG
definition YAML file:
  - Resolves predefined rules from the built-in catalog
  - Normalizes custom rules into the Azure security rule schema
  - Creates the NSG, then one security rule per normalized entry

Usage:
    # Dry-run: show the normalized rules that would be created
    python provision.py plan nsgs/web-tier.yaml

    # Apply: create the NSG and its rules
    python provision.py apply nsgs/web-tier.yaml --name web-tier

Environment:
    AZURE_SUBSCRIPTION_ID - Subscription to provision into (required for apply)
    AZURE_TENANT_ID, AZURE_CLIENT_ID, AZURE_CLIENT_SECRET
                          - Service principal, or any other DefaultAzureCredential source

Exit codes:
    0 - Success / nothing to create
    1 - Error
    2 - Dry-run plan has rules to create
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from nsg_component import (
    ORIGIN_CUSTOM, ORIGIN_PREDEFINED, NetworkSecurityGroup, NetworkSecurityGroupArgs, ProvisioningPlan,
)

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output Formatting
# ---------------------------------------------------------------------------

def _ports(rule: Dict[str, Any], direction: str) -> str:
    if f"{direction}PortRanges" in rule:
        return ",".join(rule[f"{direction}PortRanges"])
    return rule.get(f"{direction}PortRange", "-")


def _addresses(rule: Dict[str, Any], direction: str) -> str:
    parts = []
    if f"{direction}AddressPrefix" in rule:
        parts.append(rule[f"{direction}AddressPrefix"])
    if f"{direction}AddressPrefixes" in rule:
        parts.extend(rule[f"{direction}AddressPrefixes"])
    if f"{direction}ApplicationSecurityGroups" in rule:
        parts.extend(g["id"].rsplit("/", 1)[-1] for g in rule[f"{direction}ApplicationSecurityGroups"])
    return ",".join(parts) or "-"


def format_plan_text(plan: ProvisioningPlan) -> str:
    """Format a provisioning plan as human-readable text."""
    lines = ["📋 NSG Provisioning Plan", "=" * 50, ""]
    lines.append(f"Network security group: {plan.security_group_name}")
    lines.append(f"Resource group: {plan.resource_group_name}")
    lines.append(f"Location: {plan.location or '(resource group default)'}")
    lines.append("")

    for origin in (ORIGIN_PREDEFINED, ORIGIN_CUSTOM):
        planned = plan.rules_from(origin)
        if not planned:
            continue
        lines.append(f"🆕 {origin.capitalize()} rules to create: {len(planned)}")
        for p in planned:
            rule = p.rule.to_dict()
            lines.append(f"   + {rule['securityRuleName']} [{p.resource_name}] priority {rule['priority']}")
            lines.append(f"     {rule['direction']} {rule['access']} {rule['protocol']}"
                         f" {_addresses(rule, 'source')}:{_ports(rule, 'source')}"
                         f" -> {_addresses(rule, 'destination')}:{_ports(rule, 'destination')}")
        lines.append("")

    if plan.skipped:
        lines.append(f"⏭️  Skipped: {plan.skipped_count}")
        for s in plan.skipped:
            lines.append(f"   - predefinedRules[{s.index}]: {s.reason}")
        lines.append("")

    lines.append(f"Total: {len(plan.rules)} create, {plan.skipped_count} skip")
    return "\n".join(lines)


def format_plan_markdown(plan: ProvisioningPlan) -> str:
    """Format a provisioning plan as markdown."""
    lines = [f"## 📋 NSG Provisioning Plan: `{plan.security_group_name}`", ""]

    parts = [f"**{len(plan.rules)}** rule(s) to create"]
    if plan.skipped:
        parts.append(f"**{plan.skipped_count}** skipped")
    lines.append(" | ".join(parts))
    lines.append("")

    if plan.rules:
        lines.append("<details>")
        lines.append(f"<summary>🆕 Create {len(plan.rules)} rule(s)</summary>")
        lines.append("")
        lines.append("| Resource | Name | Priority | Direction | Access | Protocol | Source | Destination |")
        lines.append("|---|---|---|---|---|---|---|---|")
        for p in plan.rules:
            rule = p.rule.to_dict()
            lines.append(
                f"| `{p.resource_name}` | {rule['securityRuleName']} | {rule['priority']} | {rule['direction']} "
                f"| {rule['access']} | `{rule['protocol']}` "
                f"| `{_addresses(rule, 'source')}:{_ports(rule, 'source')}` "
                f"| `{_addresses(rule, 'destination')}:{_ports(rule, 'destination')}` |"
            )
        lines.append("")
        lines.append("</details>")
        lines.append("")

    if plan.skipped:
        lines.append("### ⏭️ Skipped")
        for s in plan.skipped:
            lines.append(f"- `predefinedRules[{s.index}]`: {s.reason}")
        lines.append("")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        description="Provision an Azure network security group from an NSG definition",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", choices=["plan", "apply"],
                        help="plan: dry-run | apply: create the NSG and its rules")
    parser.add_argument("config", help="Path to the NSG definition YAML file")
    parser.add_argument("--name", default=None,
                        help="Component name; also the NSG name unless securityGroupName is set "
                             "(default: config file name without extension)")
    parser.add_argument("--subscription-id", default=None, help="Override AZURE_SUBSCRIPTION_ID")
    parser.add_argument("--format", choices=["text", "json", "markdown"], default="text")

    args = parser.parse_args()
    name = args.name or Path(args.config).stem

    try:
        nsg_args = NetworkSecurityGroupArgs.from_yaml(args.config)
        provider = None
        if args.command == "apply":
            from azure_provider import AzureNetworkProvider
            provider = AzureNetworkProvider.from_environment(args.subscription_id)

        component = NetworkSecurityGroup(name, nsg_args, provider=provider)
        plan = component.plan()

        if args.command == "plan":
            if args.format == "json":
                print(json.dumps(plan.to_dict(), indent=2))
            elif args.format == "markdown":
                print(format_plan_markdown(plan))
            else:
                print(format_plan_text(plan))
            sys.exit(2 if plan.rules else 0)

        outputs = component.provision(plan)
        if args.format == "json":
            print(json.dumps(outputs, indent=2))
        else:
            print(f"✅ {outputs['networkSecurityGroupName']}: {len(outputs['createdRules'])} rule(s) created")
            print(f"   ID: {outputs['networkSecurityGroupId']}")
            for skipped in outputs['skippedRules']:
                print(f"⏭️  Skipped unknown predefined rule: {skipped}")

    except Exception as e:
        if args.format == "json":
            print(json.dumps({'error': str(e)}, indent=2))
        else:
            print(f"❌ Provisioning error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

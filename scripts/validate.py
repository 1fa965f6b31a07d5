#!/usr/bin/env python3
"""
Azure NSG Platform - Validation Script

Validates an NSG definition YAML file against the schema, Azure security rule
constraints and naming conventions before it is provisioned.

Usage:
    python validate.py <nsg_definition.yaml>

Exit codes:
    0 - All validations passed
    1 - Validation failures (errors)
    2 - Warnings only (no errors)
"""

import sys
import re
import string
import ipaddress
import argparse
import json
import yaml
from typing import Dict, List, Any, Optional
from pathlib import Path
from dataclasses import dataclass, field

import rule_catalog
from nsg_component import KNOWN_KEYS
from rule_normalizer import MIN_PRIORITY, MAX_PRIORITY


@dataclass
class ValidationResult:
    """Represents the result of a validation check"""
    level: str  # 'error', 'warning', 'info'
    message: str
    line: Optional[int] = None
    rule: Optional[str] = None
    context: Optional[str] = None


@dataclass
class ValidationSummary:
    """Summary of all validation results"""
    errors: List[ValidationResult] = field(default_factory=list)
    warnings: List[ValidationResult] = field(default_factory=list)
    info: List[ValidationResult] = field(default_factory=list)

    def add_result(self, result: ValidationResult):
        if result.level == 'error':
            self.errors.append(result)
        elif result.level == 'warning':
            self.warnings.append(result)
        else:
            self.info.append(result)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def get_exit_code(self) -> int:
        if self.has_errors:
            return 1
        elif self.has_warnings:
            return 2
        return 0


class NetworkSecurityGroupValidator:
    """Validator for Azure NSG definition files"""

    # Azure allows at most 1000 security rules per NSG
    MAX_RULES_PER_NSG = 1000

    KNOWN_CUSTOM_RULE_KEYS = {
        'name', 'priority', 'direction', 'access', 'protocol', 'sourcePortRange', 'destinationPortRange',
        'sourceAddressPrefix', 'sourceAddressPrefixes', 'destinationAddressPrefix', 'destinationAddressPrefixes',
        'description', 'sourceApplicationSecurityGroupIds', 'destinationApplicationSecurityGroupIds',
    }
    KNOWN_PREDEFINED_RULE_KEYS = {
        'name', 'priority', 'sourcePortRange',
        'sourceApplicationSecurityGroupIds', 'destinationApplicationSecurityGroupIds',
    }
    # Group-wide defaults are lists; a bare string is accepted by the provisioner but flagged
    LIST_KEYS = ['sourceAddressPrefix', 'sourceAddressPrefixes', 'destinationAddressPrefix', 'destinationAddressPrefixes']

    VALID_DIRECTIONS = {'Inbound', 'Outbound'}
    VALID_ACCESS = {'Allow', 'Deny'}
    VALID_PROTOCOLS = {'Tcp', 'Udp', 'Icmp', 'Esp', 'Ah', '*'}

    # Azure security rule names: 1-80 chars, alphanumerics, '_', '.', '-';
    # start with an alphanumeric, end with an alphanumeric or '_'
    RULE_NAME_PATTERN = r'^[A-Za-z0-9]([A-Za-z0-9_.-]{0,78}[A-Za-z0-9_])?$'

    # Service tags accepted in place of a CIDR
    SERVICE_TAG_PATTERN = r'^[A-Za-z][A-Za-z0-9]*(\.[A-Za-z0-9]+)?$'

    def __init__(self, config_path: str):
        self.config_path = Path(config_path).resolve()

    def validate(self) -> ValidationSummary:
        """Main validation method - performs all checks"""
        summary = ValidationSummary()

        if not self.config_path.exists():
            summary.add_result(ValidationResult(
                level='error',
                message=f"❌ NSG definition {self.config_path} not found.\n   → Pass the path to the YAML file describing the network security group.",
                rule='file_exists'
            ))
            return summary

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            summary.add_result(ValidationResult(
                level='error',
                message=f"YAML syntax error: {e}",
                rule='yaml_syntax'
            ))
            return summary

        if not data:
            summary.add_result(ValidationResult(
                level='error',
                message=f"{self.config_path.name} is empty",
                rule='yaml_content'
            ))
            return summary

        if not isinstance(data, dict):
            summary.add_result(ValidationResult(
                level='error',
                message=f"NSG definition must be a mapping, got {type(data).__name__}",
                rule='schema_type'
            ))
            return summary

        self._validate_schema(data, summary)
        self._validate_custom_rules(data, summary)
        self._validate_predefined_rules(data, summary)
        self._validate_rule_count(data, summary)
        self._validate_unicode_characters(data, summary)

        return summary

    def _rule_list(self, data: Dict[str, Any], key: str) -> List[Any]:
        value = data.get(key)
        return value if isinstance(value, list) else []

    def _validate_schema(self, data: Dict[str, Any], summary: ValidationSummary):
        """Validate basic YAML schema structure"""
        if not data.get('resourceGroupName'):
            summary.add_result(ValidationResult(
                level='error',
                message="Required field 'resourceGroupName' is missing",
                rule='schema_required_fields'
            ))

        unknown_keys = set(data.keys()) - KNOWN_KEYS
        for key in sorted(unknown_keys):
            summary.add_result(ValidationResult(
                level='error',
                message=f"❌ Unknown top-level key '{key}' — did you mean one of: {', '.join(sorted(KNOWN_KEYS))}?\n   → Typos in key names are silently ignored and your config won't apply.",
                rule='schema_unknown_key'
            ))

        for key in ('resourceGroupName', 'securityGroupName', 'location'):
            if key in data and not isinstance(data[key], str):
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"'{key}' must be a string, got {type(data[key]).__name__}",
                    rule='schema_field_type'
                ))

        for key in ('customRules', 'predefinedRules'):
            if key in data and data[key] is not None and not isinstance(data[key], list):
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"'{key}' must be a list",
                    rule='schema_type'
                ))

        for key in self.LIST_KEYS:
            if key not in data:
                continue
            value = data[key]
            if isinstance(value, str):
                summary.add_result(ValidationResult(
                    level='warning',
                    message=f"⚠️ '{key}' should be a list, not a bare string.\n   → Change: {key}: \"{value}\"\n   → To:     {key}: [\"{value}\"]",
                    rule='schema_list_type'
                ))
                self._validate_address_prefix(value, key, summary)
            elif not isinstance(value, list):
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"'{key}' must be a list, got {type(value).__name__}",
                    rule='schema_list_type'
                ))
            else:
                for prefix in value:
                    self._validate_address_prefix(prefix, key, summary)

        if isinstance(data.get('sourceAddressPrefix'), list) and len(data['sourceAddressPrefix']) > 1:
            summary.add_result(ValidationResult(
                level='warning',
                message="⚠️ 'sourceAddressPrefix' holds more than one element — they are joined with ',' into one prefix.\n   → Use 'sourceAddressPrefixes' for multiple prefixes.",
                rule='schema_single_prefix'
            ))
        if isinstance(data.get('destinationAddressPrefix'), list) and len(data['destinationAddressPrefix']) > 1:
            summary.add_result(ValidationResult(
                level='warning',
                message="⚠️ 'destinationAddressPrefix' holds more than one element — they are joined with ',' into one prefix.\n   → Use 'destinationAddressPrefixes' for multiple prefixes.",
                rule='schema_single_prefix'
            ))

    def _validate_priority(self, priority: Any, context: str, summary: ValidationSummary):
        if isinstance(priority, bool) or not isinstance(priority, int):
            summary.add_result(ValidationResult(
                level='error',
                message=f"Priority in {context} must be an integer, got \"{priority}\"",
                rule='rule_priority_type',
                context=context
            ))
        elif not (MIN_PRIORITY <= priority <= MAX_PRIORITY):
            summary.add_result(ValidationResult(
                level='error',
                message=f"❌ Priority {priority} in {context} is out of range — must be between {MIN_PRIORITY} and {MAX_PRIORITY}.",
                rule='rule_priority_range',
                context=context
            ))

    def _check_duplicate_names(self, rules: List[Any], collection: str, summary: ValidationSummary):
        """Rule names must be unique within their list"""
        seen = {}
        for i, rule in enumerate(rules):
            if not isinstance(rule, dict) or 'name' not in rule:
                continue
            name = rule['name']
            if name in seen:
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"❌ Duplicate rule name '{name}': {collection}[{i}] repeats {collection}[{seen[name]}] — the second rule would overwrite the first.\n   → Rename or remove the duplicate.",
                    rule='rule_duplicate_name',
                    context=f"{collection}[{i}]"
                ))
            else:
                seen[name] = i

    def _validate_custom_rules(self, data: Dict[str, Any], summary: ValidationSummary):
        """Validate each custom rule"""
        rules = self._rule_list(data, 'customRules')
        for i, rule in enumerate(rules):
            context = f"customRules[{i}]"
            if not isinstance(rule, dict):
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"{context} must be a mapping, got {type(rule).__name__}",
                    rule='rule_type',
                    context=context
                ))
                continue

            for key in sorted(set(rule.keys()) - self.KNOWN_CUSTOM_RULE_KEYS):
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"❌ Unknown key '{key}' in {context} — valid keys: {', '.join(sorted(self.KNOWN_CUSTOM_RULE_KEYS))}\n   → This key will be ignored. Check spelling.",
                    rule='schema_unknown_rule_key',
                    context=context
                ))

            for required in ('name', 'priority'):
                if required not in rule:
                    summary.add_result(ValidationResult(
                        level='error',
                        message=f"Rule {context} is missing '{required}'",
                        rule='rule_required_fields',
                        context=context
                    ))

            if 'name' in rule:
                self._validate_rule_name(rule['name'], context, summary)
            if 'priority' in rule:
                self._validate_priority(rule['priority'], context, summary)

            self._validate_enum(rule, 'direction', self.VALID_DIRECTIONS, context, summary)
            self._validate_enum(rule, 'access', self.VALID_ACCESS, context, summary)
            self._validate_enum(rule, 'protocol', self.VALID_PROTOCOLS, context, summary)

            for port_field in ('sourcePortRange', 'destinationPortRange'):
                if port_field in rule:
                    self._validate_port_pattern(str(rule[port_field]), f"{context}.{port_field}", summary)

            for prefix_field in ('sourceAddressPrefix', 'destinationAddressPrefix'):
                if prefix_field in rule:
                    self._validate_address_prefix(rule[prefix_field], f"{context}.{prefix_field}", summary)
            for prefix_field in ('sourceAddressPrefixes', 'destinationAddressPrefixes'):
                if prefix_field in rule:
                    if not isinstance(rule[prefix_field], list):
                        summary.add_result(ValidationResult(
                            level='error',
                            message=f"'{prefix_field}' in {context} must be a list",
                            rule='rule_prefix_list_type',
                            context=context
                        ))
                    else:
                        for prefix in rule[prefix_field]:
                            self._validate_address_prefix(prefix, f"{context}.{prefix_field}", summary)

            self._validate_asg_ids(rule, context, summary)

        self._check_duplicate_names(rules, 'customRules', summary)

    def _validate_predefined_rules(self, data: Dict[str, Any], summary: ValidationSummary):
        """Validate predefined rule references"""
        rules = self._rule_list(data, 'predefinedRules')
        for i, rule in enumerate(rules):
            context = f"predefinedRules[{i}]"
            if not isinstance(rule, dict):
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"{context} must be a mapping, got {type(rule).__name__}",
                    rule='rule_type',
                    context=context
                ))
                continue

            for key in sorted(set(rule.keys()) - self.KNOWN_PREDEFINED_RULE_KEYS):
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"❌ Unknown key '{key}' in {context} — predefined rules only accept: {', '.join(sorted(self.KNOWN_PREDEFINED_RULE_KEYS))}\n   → Ports, protocol and direction come from the catalog template.",
                    rule='schema_unknown_rule_key',
                    context=context
                ))

            if 'name' not in rule:
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"Rule {context} is missing 'name'",
                    rule='rule_required_fields',
                    context=context
                ))
            elif rule_catalog.lookup(str(rule['name'])) is None:
                summary.add_result(ValidationResult(
                    level='warning',
                    message=f"⚠️ Unknown predefined rule '{rule['name']}' in {context} — it will be skipped and no rule created.\n   → Check the name against the catalog (names are case-sensitive, e.g. 'HTTPS', 'ActiveDirectory-AllowDNS').",
                    rule='predefined_rule_unknown',
                    context=context
                ))

            if 'priority' in rule:
                self._validate_priority(rule['priority'], context, summary)
            if 'sourcePortRange' in rule:
                self._validate_port_pattern(str(rule['sourcePortRange']), f"{context}.sourcePortRange", summary)
            self._validate_asg_ids(rule, context, summary)

        self._check_duplicate_names(rules, 'predefinedRules', summary)

        if len(rules) > MAX_PRIORITY - MIN_PRIORITY:
            summary.add_result(ValidationResult(
                level='error',
                message=f"❌ {len(rules)} predefined rules cannot all receive a default priority (max {MAX_PRIORITY - MIN_PRIORITY}).",
                rule='predefined_rule_count'
            ))

    def _validate_rule_count(self, data: Dict[str, Any], summary: ValidationSummary):
        """Check the total against Azure's per-NSG rule limit"""
        total = len(self._rule_list(data, 'customRules')) + len(self._rule_list(data, 'predefinedRules'))
        if total > self.MAX_RULES_PER_NSG:
            summary.add_result(ValidationResult(
                level='error',
                message=f"❌ NSG defines {total} rules, Azure allows at most {self.MAX_RULES_PER_NSG} per network security group.\n   → Split the rules across multiple NSGs or consolidate port lists.",
                rule='nsg_rule_count_limit'
            ))
        summary.add_result(ValidationResult(
            level='info',
            message=f"NSG defines {total} rule(s)",
            rule='nsg_rule_count'
        ))

    def _validate_rule_name(self, name: Any, context: str, summary: ValidationSummary):
        if not isinstance(name, str) or not re.match(self.RULE_NAME_PATTERN, name):
            summary.add_result(ValidationResult(
                level='error',
                message=f"Rule name '{name}' in {context} is invalid — use 1-80 letters, digits, '_', '.' or '-', starting with a letter or digit and ending with a letter, digit or '_'.",
                rule='naming_pattern_violation',
                context=context
            ))

    def _validate_enum(self, rule: Dict[str, Any], key: str, allowed: set, context: str, summary: ValidationSummary):
        if key in rule and rule[key] not in allowed:
            summary.add_result(ValidationResult(
                level='error',
                message=f"Invalid {key} '{rule[key]}' in {context} — must be one of: {', '.join(sorted(allowed))}",
                rule=f'rule_invalid_{key}',
                context=context
            ))

    def _validate_port_pattern(self, pattern: str, context: str, summary: ValidationSummary):
        """Validate a port pattern: '*', a port, a range, or a comma list of those"""
        if pattern == '*':
            return
        for part in (p.strip() for p in pattern.split(',')):
            bounds = part.split('-')
            if len(bounds) > 2:
                self._invalid_port(part, context, summary)
                continue
            try:
                numbers = [int(b) for b in bounds]
            except ValueError:
                self._invalid_port(part, context, summary)
                continue
            if any(not (0 <= n <= 65535) for n in numbers):
                self._invalid_port(part, context, summary)
            elif len(numbers) == 2 and numbers[0] > numbers[1]:
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"Invalid port range '{part}' in {context}: start ({numbers[0]}) > end ({numbers[1]})",
                    rule='rule_invalid_port_range',
                    context=context
                ))

    def _invalid_port(self, part: str, context: str, summary: ValidationSummary):
        summary.add_result(ValidationResult(
            level='error',
            message=f"Invalid port '{part}' in {context} (must be '*', 0-65535, or a range such as 8000-8100)",
            rule='rule_invalid_port',
            context=context
        ))

    def _validate_address_prefix(self, prefix: Any, context: str, summary: ValidationSummary):
        """Validate a CIDR, IP address, '*' or service tag"""
        if not isinstance(prefix, str):
            summary.add_result(ValidationResult(
                level='error',
                message=f"Address prefix in {context} must be a string, got {type(prefix).__name__}: {prefix}",
                rule='rule_prefix_item_type',
                context=context
            ))
            return
        if prefix == '*' or re.match(self.SERVICE_TAG_PATTERN, prefix):
            return
        try:
            ipaddress.ip_network(prefix, strict=False)
        except ValueError as e:
            summary.add_result(ValidationResult(
                level='error',
                message=f"Invalid address prefix '{prefix}' in {context}: {e}",
                rule='rule_invalid_cidr',
                context=context
            ))

    def _validate_asg_ids(self, rule: Dict[str, Any], context: str, summary: ValidationSummary):
        for key in ('sourceApplicationSecurityGroupIds', 'destinationApplicationSecurityGroupIds'):
            if key not in rule:
                continue
            if not isinstance(rule[key], list):
                summary.add_result(ValidationResult(
                    level='error',
                    message=f"'{key}' in {context} must be a list",
                    rule='rule_asg_type',
                    context=context
                ))
                continue
            for asg_id in rule[key]:
                if not isinstance(asg_id, str) or '/applicationSecurityGroups/' not in asg_id:
                    summary.add_result(ValidationResult(
                        level='warning',
                        message=f"Application security group reference '{asg_id}' in {context} does not look like an ASG resource ID",
                        rule='rule_asg_reference_format',
                        context=context
                    ))

    def _validate_unicode_characters(self, data: Dict[str, Any], summary: ValidationSummary):
        """Validate that names and descriptions contain only ASCII-printable characters.

        Non-ASCII characters (unicode, emoji, zero-width chars, homoglyphs) are
        rejected by the Azure API or produce confusingly similar rule names.
        """
        PRINTABLE = set(string.printable)

        def check_ascii(value: str, field_path: str):
            for i, ch in enumerate(value):
                if ch not in PRINTABLE:
                    summary.add_result(ValidationResult(
                        level='error',
                        message=f"Non-ASCII character {ch!r} (U+{ord(ch):04X}) found in {field_path} at position {i} — only ASCII-printable characters are allowed.",
                        rule='unicode_character',
                        context=field_path
                    ))
                    return  # One error per field is enough

        for key in ('resourceGroupName', 'securityGroupName'):
            if isinstance(data.get(key), str):
                check_ascii(data[key], key)

        for collection in ('customRules', 'predefinedRules'):
            for i, rule in enumerate(self._rule_list(data, collection)):
                if not isinstance(rule, dict):
                    continue
                for key in ('name', 'description'):
                    if isinstance(rule.get(key), str):
                        check_ascii(rule[key], f"{collection}[{i}].{key}")

    def format_markdown_output(self, summary: ValidationSummary) -> str:
        """Format validation results as markdown for PR comments"""
        output = []
        error_count = len(summary.errors)
        warning_count = len(summary.warnings)

        if error_count == 0 and warning_count == 0:
            output.append("## ✅ NSG Validation Results")
            output.append(f"**File:** `{self.config_path.name}` | **Status:** All checks passed!")
            return "\n\n".join(output)

        output.append("## 🔍 NSG Validation Results")
        output.append(f"**File:** `{self.config_path.name}` | **Errors:** {error_count} | **Warnings:** {warning_count}")
        output.append("")

        # Group by rule list entry; schema/global results go first
        sections = {'configuration': {'errors': [], 'warnings': []}}
        for result in summary.errors + summary.warnings:
            bucket = 'errors' if result.level == 'error' else 'warnings'
            key = 'configuration'
            if result.context and result.context.startswith(('customRules[', 'predefinedRules[')):
                key = result.context.split('.')[0]
            sections.setdefault(key, {'errors': [], 'warnings': []})[bucket].append(result)

        def _render_section(title, results):
            output.append("<details>")
            output.append(f"<summary>{title}</summary>")
            output.append("")
            if results['errors']:
                output.append("### Errors")
                for error in results['errors']:
                    message = error.message
                    if message.startswith('❌'):
                        message = message[1:].strip()
                    output.append(f"- ❌ {message}")
                output.append("")
            if results['warnings']:
                output.append("### Warnings")
                for warning in results['warnings']:
                    message = warning.message
                    if message.startswith('⚠️'):
                        message = message[2:].strip()
                    output.append(f"- ⚠️ {message}")
                output.append("")
            output.append("</details>")
            output.append("")

        for key, results in sections.items():
            sec_e = len(results['errors'])
            sec_w = len(results['warnings'])
            if sec_e == 0 and sec_w == 0:
                continue
            if key == 'configuration':
                title = f"⚙️ Configuration Issues — {sec_e} errors, {sec_w} warnings"
            else:
                emoji = "❌" if sec_e > 0 else "⚠️"
                title = f"{emoji} {key} — {sec_e} errors, {sec_w} warnings"
            _render_section(title, results)

        return "\n".join(output)


def _result_dicts(results: List[ValidationResult]) -> List[Dict[str, Any]]:
    return [
        {
            'level': r.level,
            'message': r.message,
            'rule': r.rule,
            'context': r.context,
            'line': r.line
        } for r in results
    ]


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Validate an Azure NSG definition YAML file',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - All validations passed
  1 - Validation failures (errors)
  2 - Warnings only (no errors)

Examples:
  python validate.py nsgs/web-tier.yaml
  python validate.py nsgs/web-tier.yaml --format markdown
        """
    )

    parser.add_argument(
        'config',
        help='Path to the NSG definition YAML file'
    )

    parser.add_argument(
        '--format',
        choices=['text', 'json', 'markdown'],
        default='text',
        help='Output format (default: text)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Include info-level messages in output'
    )

    parser.add_argument(
        '--warnings-as-errors',
        action='store_true',
        help='Treat warnings as errors'
    )

    parser.add_argument(
        '--no-warnings',
        action='store_true',
        help='Suppress warning output (only show errors)'
    )

    args = parser.parse_args()

    try:
        validator = NetworkSecurityGroupValidator(args.config)
        summary = validator.validate()

        if args.no_warnings:
            summary.warnings = []

        if args.warnings_as_errors and summary.has_warnings and not summary.has_errors:
            summary.errors.extend(summary.warnings)
            summary.warnings = []

        if args.format == 'markdown':
            print(validator.format_markdown_output(summary))
        elif args.format == 'json':
            output = {
                'config': args.config,
                'validation_results': {
                    'errors': _result_dicts(summary.errors),
                    'warnings': _result_dicts(summary.warnings),
                    'info': _result_dicts(summary.info) if args.verbose else []
                },
                'summary': {
                    'error_count': len(summary.errors),
                    'warning_count': len(summary.warnings),
                    'info_count': len(summary.info),
                    'exit_code': summary.get_exit_code()
                }
            }
            print(json.dumps(output, indent=2))
        else:
            print(f"🔍 Validating NSG definition: {args.config}")
            print()

            for title, results in (("❌ Errors:", summary.errors), ("⚠️  Warnings:", summary.warnings)):
                if results:
                    print(title)
                    for result in results:
                        context_str = f" [{result.context}]" if result.context else ""
                        rule_str = f" ({result.rule})" if result.rule else ""
                        print(f"   • {result.message}{context_str}{rule_str}")
                    print()

            if args.verbose and summary.info:
                print("ℹ️  Info:")
                for info in summary.info:
                    context_str = f" [{info.context}]" if info.context else ""
                    rule_str = f" ({info.rule})" if info.rule else ""
                    print(f"   • {info.message}{context_str}{rule_str}")
                print()

            print("📊 Summary:")
            print(f"   Errors: {len(summary.errors)}")
            print(f"   Warnings: {len(summary.warnings)}")
            if args.verbose:
                print(f"   Info: {len(summary.info)}")

            if summary.get_exit_code() == 0:
                print("\n✅ All validations passed!")
            elif summary.get_exit_code() == 2:
                print("\n⚠️  Validation completed with warnings")
            else:
                print("\n❌ Validation failed with errors")

        sys.exit(summary.get_exit_code())

    except Exception as e:
        if args.format == 'json':
            print(json.dumps({'error': str(e)}, indent=2))
        else:
            print(f"❌ Validation error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()

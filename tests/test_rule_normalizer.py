"""
Tests for the rule normalizer and the predefined rule catalog.

Run: python -m pytest tests/test_rule_normalizer.py -v
"""

import sys
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

# Add scripts/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

import rule_catalog
from rule_normalizer import (
    ConfigError, GroupAddressDefaults, InvalidPriority, ListOf, Range, RawCustomRule, RawPredefinedRuleRef,
    Single, default_priority, normalize_custom_rule, normalize_predefined_rule, parse_port_pattern,
    split_port_fields, template_port_fields, validate_priority,
)


def _custom(**fields):
    fields.setdefault('name', 'test-rule')
    fields.setdefault('priority', 300)
    return RawCustomRule.from_dict(fields)


def _predefined(refs, index=0, defaults=None):
    return normalize_predefined_rule(refs[index], index, len(refs), defaults)


# ============================================================
# Catalog
# ============================================================

class TestCatalog:
    @pytest.mark.parametrize("name,port,protocol", [
        ("HTTP", "80", "Tcp"),
        ("HTTPS", "443", "Tcp"),
        ("MySQL", "3306", "Tcp"),
        ("DNS-UDP", "53", "Udp"),
        ("ActiveDirectory-AllowDNS", "53", "*"),
        ("ActiveDirectory-AllowWindowsTime", "123", "Udp"),
        ("DynamicPorts", "49152-65535", "Tcp"),
        ("ElasticSearch", "9200-9300", "Tcp"),
        ("Riak-JMX", "8985", "Tcp"),
    ])
    def test_known_templates(self, name, port, protocol):
        template = rule_catalog.lookup(name)
        assert template.destination_port_range == port
        assert template.protocol == protocol
        assert template.direction == "Inbound"
        assert template.access == "Allow"
        assert template.source_port_range == "*"

    def test_unknown_name(self):
        assert rule_catalog.lookup("NotARealRule") is None

    def test_lookup_is_case_sensitive(self):
        assert rule_catalog.lookup("http") is None

    def test_service_classes_present(self):
        for name in ["ActiveDirectory-AllowADReplication", "ActiveDirectory-AllowKerberosAuthentication",
                     "ActiveDirectory-AllowNETBIOSAuthentication", "ActiveDirectory-AllowRPCReplication",
                     "ActiveDirectory-AllowFileReplication", "Cassandra", "Cassandra-JMX", "Cassandra-Thrift",
                     "CouchDB", "CouchDB-HTTPS", "MongoDB", "MSSQL", "PostgreSQL", "Redis", "DNS-TCP",
                     "Memcached", "IMAP", "IMAPS", "POP3", "POP3S", "SMTP", "SMTPS", "FTP", "LDAP",
                     "RabbitMQ", "RDP", "SSH", "WinRM", "Kestrel", "Neo4J", "Riak"]:
            assert name in rule_catalog.PREDEFINED_RULES, name

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            rule_catalog.PREDEFINED_RULES["Custom"] = rule_catalog.lookup("HTTP")

    def test_templates_are_frozen(self):
        with pytest.raises(FrozenInstanceError):
            rule_catalog.lookup("HTTP").destination_port_range = "8080"


# ============================================================
# Priorities
# ============================================================

class TestPriority:
    @pytest.mark.parametrize("priority", [100, 101, 2000, 4095, 4096])
    def test_in_range(self, priority):
        assert validate_priority(priority) == priority
        assert normalize_custom_rule(_custom(priority=priority), 0).priority == priority

    @pytest.mark.parametrize("priority", [99, 4097, 0, -1, 65000])
    def test_out_of_range(self, priority):
        with pytest.raises(InvalidPriority):
            normalize_custom_rule(_custom(priority=priority), 0)

    @pytest.mark.parametrize("priority", ["200", 200.0, None, True])
    def test_non_integer(self, priority):
        with pytest.raises(InvalidPriority):
            validate_priority(priority)

    def test_error_message(self):
        with pytest.raises(InvalidPriority) as exc:
            validate_priority(99, "too-low")
        assert "between 100 and 4096, got 99" in str(exc.value)
        assert "too-low" in str(exc.value)
        assert exc.value.priority == 99
        assert isinstance(exc.value, ValueError)

    @pytest.mark.parametrize("n", [1, 2, 5, 100, 3996])
    def test_default_priorities_fill_down_from_top(self, n):
        priorities = [default_priority(i, n) for i in range(n)]
        assert priorities == list(range(4096 - n, 4096))
        assert len(set(priorities)) == n
        assert all(100 <= p <= 4096 for p in priorities)

    def test_default_priorities_applied_in_list_order(self):
        refs = [RawPredefinedRuleRef(name=n) for n in ["SSH", "HTTP", "HTTPS", "RDP"]]
        priorities = [_predefined(refs, i).priority for i in range(len(refs))]
        assert priorities == [4092, 4093, 4094, 4095]

    def test_too_many_predefined_rules_overflow(self):
        refs = [RawPredefinedRuleRef(name="HTTP")] * 3997
        with pytest.raises(InvalidPriority):
            _predefined(refs, 0)

    def test_explicit_predefined_priority(self):
        refs = [RawPredefinedRuleRef(name="HTTP", priority=150)]
        assert _predefined(refs).priority == 150

    def test_explicit_predefined_priority_validated(self):
        refs = [RawPredefinedRuleRef(name="HTTP", priority=4097)]
        with pytest.raises(InvalidPriority):
            _predefined(refs)


# ============================================================
# Port patterns
# ============================================================

class TestPortPatterns:
    @pytest.mark.parametrize("pattern,expected", [
        (None, Single("*")),
        ("", Single("*")),
        ("*", Single("*")),
        ("80", Single("80")),
        ("80,443", ListOf(("80", "443"))),
        ("80, 443 ,8080", ListOf(("80", "443", "8080"))),
        ("49152-65535", Range("49152", "65535")),
        ("80,8000-8100", ListOf(("80", "8000-8100"))),
    ])
    def test_parse(self, pattern, expected):
        assert parse_port_pattern(pattern) == expected

    def test_range_pattern_round_trips(self):
        assert parse_port_pattern("9200-9300").pattern == "9200-9300"

    def test_user_ports(self):
        assert split_port_fields(parse_port_pattern("80")) == ("80", None)
        assert split_port_fields(parse_port_pattern("80,443")) == (None, ["80", "443"])
        assert split_port_fields(parse_port_pattern(None)) == ("*", None)
        # A range without a comma is passed through as one value
        assert split_port_fields(parse_port_pattern("1000-2000")) == ("1000-2000", None)

    def test_template_ports(self):
        assert template_port_fields(parse_port_pattern("443")) == ("443", None)
        assert template_port_fields(parse_port_pattern("49152-65535")) == (None, ["49152-65535"])
        # Lists are not re-split: the whole pattern is one element
        assert template_port_fields(parse_port_pattern("80,443")) == (None, ["80,443"])


# ============================================================
# Predefined rules
# ============================================================

class TestPredefinedRules:
    def test_http_https_scenario(self):
        refs = [RawPredefinedRuleRef(name="HTTP"), RawPredefinedRuleRef(name="HTTPS")]
        http, https = _predefined(refs, 0), _predefined(refs, 1)

        assert (http.priority, https.priority) == (4094, 4095)
        assert (http.destination_port_range, https.destination_port_range) == ("80", "443")
        for rule in (http, https):
            assert rule.direction == "Inbound"
            assert rule.access == "Allow"
            assert rule.protocol == "Tcp"
            assert rule.destination_port_ranges is None

    def test_full_record(self):
        refs = [RawPredefinedRuleRef(name="SSH")]
        assert _predefined(refs).to_dict() == {
            'securityRuleName': 'SSH',
            'priority': 4095,
            'direction': 'Inbound',
            'access': 'Allow',
            'protocol': 'Tcp',
            'sourcePortRange': '*',
            'destinationPortRange': '22',
            'sourceAddressPrefix': '*',
            'destinationAddressPrefix': '*',
            'description': 'SSH',
        }

    def test_unknown_name_is_skipped(self, caplog):
        refs = [RawPredefinedRuleRef(name="NotARealRule")]
        with caplog.at_level("WARNING"):
            assert _predefined(refs) is None
        assert "NotARealRule" in caplog.text

    def test_unknown_name_skips_priority_validation(self):
        refs = [RawPredefinedRuleRef(name="NotARealRule", priority=1)]
        assert _predefined(refs) is None

    def test_destination_range_kept_whole(self):
        rule = _predefined([RawPredefinedRuleRef(name="DynamicPorts")])
        assert rule.destination_port_range is None
        assert rule.destination_port_ranges == ["49152-65535"]
        assert "destinationPortRange" not in rule.to_dict()

    def test_source_port_list(self):
        rule = _predefined([RawPredefinedRuleRef(name="HTTP", source_port_range="1024, 2048")])
        assert rule.source_port_range is None
        assert rule.source_port_ranges == ["1024", "2048"]

    def test_source_port_single(self):
        rule = _predefined([RawPredefinedRuleRef(name="HTTP", source_port_range="1024")])
        assert rule.source_port_range == "1024"
        assert rule.source_port_ranges is None

    def test_group_address_defaults(self):
        defaults = GroupAddressDefaults(
            source_address_prefix=["10.0.3.0/24", "10.0.4.0/24"],
            destination_address_prefix=["VirtualNetwork"],
            source_address_prefixes=["10.0.3.0/32", "10.0.3.128/32"],
        )
        rule = _predefined([RawPredefinedRuleRef(name="HTTPS")], defaults=defaults)
        assert rule.source_address_prefix == "10.0.3.0/24,10.0.4.0/24"
        assert rule.destination_address_prefix == "VirtualNetwork"
        assert rule.source_address_prefixes == ["10.0.3.0/32", "10.0.3.128/32"]
        assert rule.destination_address_prefixes is None

    def test_no_address_defaults(self):
        rule = _predefined([RawPredefinedRuleRef(name="HTTPS")])
        assert rule.source_address_prefix == "*"
        assert rule.destination_address_prefix == "*"

    def test_application_security_groups(self):
        asg = "/subscriptions/s/resourceGroups/rg/providers/Microsoft.Network/applicationSecurityGroups/web"
        rule = _predefined([RawPredefinedRuleRef(name="HTTPS", destination_application_security_group_ids=[asg])])
        assert rule.destination_application_security_groups == [{"id": asg}]
        assert rule.source_application_security_groups is None
        assert "sourceApplicationSecurityGroups" not in rule.to_dict()

    def test_from_dict(self):
        ref = RawPredefinedRuleRef.from_dict({"name": "HTTP", "priority": 100, "sourcePortRange": 8080})
        assert ref == RawPredefinedRuleRef(name="HTTP", priority=100, source_port_range="8080")

    def test_from_dict_requires_name(self):
        with pytest.raises(ConfigError):
            RawPredefinedRuleRef.from_dict({"priority": 100})


# ============================================================
# Custom rules
# ============================================================

class TestCustomRules:
    def test_defaults(self):
        rule = normalize_custom_rule(_custom(name="bare"), 0)
        assert (rule.direction, rule.access, rule.protocol) == ("Inbound", "Allow", "*")
        assert rule.description == "Security rule for bare"

    def test_allow_internal_scenario(self):
        raw = RawCustomRule.from_dict({
            "name": "allow-internal",
            "priority": 200,
            "sourceAddressPrefix": "10.0.0.0/16",
            "destinationPortRange": "*",
        })
        assert normalize_custom_rule(raw, 0).to_dict() == {
            'securityRuleName': 'allow-internal',
            'priority': 200,
            'direction': 'Inbound',
            'access': 'Allow',
            'protocol': '*',
            'sourcePortRange': '*',
            'destinationPortRange': '*',
            'sourceAddressPrefix': '10.0.0.0/16',
            'destinationAddressPrefix': '*',
            'description': 'Security rule for allow-internal',
        }

    def test_caller_values_win(self):
        rule = normalize_custom_rule(_custom(
            direction="Outbound", access="Deny", protocol="Udp", description="Block NTP",
        ), 0)
        assert (rule.direction, rule.access, rule.protocol) == ("Outbound", "Deny", "Udp")
        assert rule.description == "Block NTP"

    def test_missing_destination_port_leaves_fields_unset(self):
        rule = normalize_custom_rule(_custom(), 0)
        assert rule.destination_port_range is None
        assert rule.destination_port_ranges is None
        assert rule.source_port_range == "*"

    def test_destination_port_list_is_split(self):
        rule = normalize_custom_rule(_custom(destinationPortRange="80, 443"), 0)
        assert rule.destination_port_range is None
        assert rule.destination_port_ranges == ["80", "443"]

    def test_destination_port_range(self):
        rule = normalize_custom_rule(_custom(destinationPortRange="8000-8100"), 0)
        assert rule.destination_port_range == "8000-8100"

    def test_numeric_port_from_yaml(self):
        rule = normalize_custom_rule(_custom(destinationPortRange=443), 0)
        assert rule.destination_port_range == "443"

    def test_never_both_port_fields(self):
        for pattern in [None, "*", "22", "22,3389", "1-1024"]:
            record = normalize_custom_rule(_custom(sourcePortRange=pattern, destinationPortRange=pattern), 0).to_dict()
            assert not ("sourcePortRange" in record and "sourcePortRanges" in record)
            assert not ("destinationPortRange" in record and "destinationPortRanges" in record)

    def test_address_prefix_lists_passed_through(self):
        rule = normalize_custom_rule(_custom(
            sourceAddressPrefixes=["10.0.0.0/24", "10.1.0.0/24"],
            destinationAddressPrefix="VirtualNetwork",
        ), 0)
        assert rule.source_address_prefixes == ["10.0.0.0/24", "10.1.0.0/24"]
        assert rule.source_address_prefix == "*"
        assert rule.destination_address_prefix == "VirtualNetwork"

    def test_application_security_groups(self):
        rule = normalize_custom_rule(_custom(sourceApplicationSecurityGroupIds=["asg-1", "asg-2"]), 0)
        assert rule.source_application_security_groups == [{"id": "asg-1"}, {"id": "asg-2"}]
        assert rule.destination_application_security_groups is None

    @pytest.mark.parametrize("missing", ["name", "priority"])
    def test_required_fields(self, missing):
        data = {"name": "r", "priority": 200}
        del data[missing]
        with pytest.raises(ConfigError):
            RawCustomRule.from_dict(data)

    def test_normalized_rule_is_frozen(self):
        rule = normalize_custom_rule(_custom(), 0)
        with pytest.raises(FrozenInstanceError):
            rule.priority = 500

"""
Azure NSG Platform - Predefined Rule Catalog

Named templates for well-known service ports. A predefined rule in an NSG
definition references one of these by name and may only override its priority,
source port and application security group scoping; the destination port is
always taken from the template.

The catalog is built once at import time and exposed read-only.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class RuleTemplate:
    """A predefined security rule template"""
    direction: str
    access: str
    protocol: str
    source_port_range: str
    destination_port_range: str
    description: str


def _template(destination_port_range: str, description: str, protocol: str = "Tcp") -> RuleTemplate:
    return RuleTemplate(
        direction="Inbound",
        access="Allow",
        protocol=protocol,
        source_port_range="*",
        destination_port_range=destination_port_range,
        description=description,
    )


PREDEFINED_RULES: Mapping[str, RuleTemplate] = MappingProxyType({
    # ActiveDirectory
    "ActiveDirectory-AllowADReplication": _template("389", "AllowADReplication", "*"),
    "ActiveDirectory-AllowADReplicationSSL": _template("636", "AllowADReplicationSSL", "*"),
    "ActiveDirectory-AllowADGCReplication": _template("3268", "AllowADGCReplication"),
    "ActiveDirectory-AllowADGCReplicationSSL": _template("3269", "AllowADGCReplicationSSL"),
    "ActiveDirectory-AllowDNS": _template("53", "AllowDNS", "*"),
    "ActiveDirectory-AllowKerberosAuthentication": _template("88", "AllowKerberosAuthentication", "*"),
    "ActiveDirectory-AllowADReplicationTrust": _template("445", "AllowADReplicationTrust", "*"),
    "ActiveDirectory-AllowSMTPReplication": _template("25", "AllowSMTPReplication"),
    "ActiveDirectory-AllowRPCReplication": _template("135", "AllowRPCReplication"),
    "ActiveDirectory-AllowFileReplication": _template("5722", "AllowFileReplication"),
    "ActiveDirectory-AllowWindowsTime": _template("123", "AllowWindowsTime", "Udp"),
    "ActiveDirectory-AllowPasswordChangeKerberes": _template("464", "AllowPasswordChangeKerberes", "*"),
    "ActiveDirectory-AllowDFSGroupPolicy": _template("138", "AllowDFSGroupPolicy", "Udp"),
    "ActiveDirectory-AllowADDSWebServices": _template("9389", "AllowADDSWebServices"),
    "ActiveDirectory-AllowNETBIOSAuthentication": _template("137", "AllowNETBIOSAuthentication", "Udp"),
    "ActiveDirectory-AllowNETBIOSReplication": _template("139", "AllowNETBIOSReplication"),

    # Databases
    "Cassandra": _template("9042", "Cassandra"),
    "Cassandra-JMX": _template("7199", "Cassandra-JMX"),
    "Cassandra-Thrift": _template("9160", "Cassandra-Thrift"),
    "CouchDB": _template("5984", "CouchDB"),
    "CouchDB-HTTPS": _template("6984", "CouchDB-HTTPS"),
    "MongoDB": _template("27017", "MongoDB"),
    "MySQL": _template("3306", "MySQL"),
    "MSSQL": _template("1433", "MSSQL"),
    "PostgreSQL": _template("5432", "PostgreSQL"),
    "Redis": _template("6379", "Redis"),

    # DNS
    "DNS-TCP": _template("53", "DNS-TCP"),
    "DNS-UDP": _template("53", "DNS-UDP", "Udp"),

    # Web
    "HTTP": _template("80", "HTTP"),
    "HTTPS": _template("443", "HTTPS"),
    "DynamicPorts": _template("49152-65535", "DynamicPorts"),

    # Search and cache
    "ElasticSearch": _template("9200-9300", "ElasticSearch"),
    "Memcached": _template("11211", "Memcached"),

    # Mail
    "IMAP": _template("143", "IMAP"),
    "IMAPS": _template("993", "IMAPS"),
    "POP3": _template("110", "POP3"),
    "POP3S": _template("995", "POP3S"),
    "SMTP": _template("25", "SMTP"),
    "SMTPS": _template("465", "SMTPS"),

    # File transfer, directory, messaging
    "FTP": _template("21", "FTP"),
    "LDAP": _template("389", "LDAP"),
    "RabbitMQ": _template("5672", "RabbitMQ"),

    # Remote access
    "RDP": _template("3389", "RDP"),
    "SSH": _template("22", "SSH"),
    "WinRM": _template("5986", "WinRM"),

    # Other services
    "Kestrel": _template("22133", "Kestrel"),
    "Neo4J": _template("7474", "Neo4J"),
    "Riak": _template("8093", "Riak"),
    "Riak-JMX": _template("8985", "Riak-JMX"),
})


def lookup(name: str) -> Optional[RuleTemplate]:
    """Return the template registered under name (exact match), or None."""
    return PREDEFINED_RULES.get(name)

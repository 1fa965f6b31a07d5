"""
Azure NSG Platform - Azure Network Provider

Creates network security groups and security rules with azure-mgmt-network.
Credentials come from azure-identity's DefaultAzureCredential (environment
variables, managed identity or an Azure CLI login).

Environment:
    AZURE_SUBSCRIPTION_ID - Subscription that owns the resource group (required)
    AZURE_TENANT_ID       - Service principal tenant (read by DefaultAzureCredential)
    AZURE_CLIENT_ID       - Service principal application ID
    AZURE_CLIENT_SECRET   - Service principal secret
"""

import logging
import os
from typing import Any, Dict, Optional

from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.network.models import ApplicationSecurityGroup, NetworkSecurityGroup, SecurityRule
from azure.mgmt.resource import ResourceManagementClient

from nsg_component import SecurityGroupRef
from rule_normalizer import ConfigError, NormalizedRule

logger = logging.getLogger(__name__)


def _asg_models(refs):
    if refs is None:
        return None
    return [ApplicationSecurityGroup(id=ref["id"]) for ref in refs]


def to_security_rule(rule: NormalizedRule) -> SecurityRule:
    """Build the SDK model for a normalized rule"""
    return SecurityRule(
        name=rule.security_rule_name,
        priority=rule.priority,
        direction=rule.direction,
        access=rule.access,
        protocol=rule.protocol,
        description=rule.description,
        source_port_range=rule.source_port_range,
        source_port_ranges=rule.source_port_ranges,
        destination_port_range=rule.destination_port_range,
        destination_port_ranges=rule.destination_port_ranges,
        source_address_prefix=rule.source_address_prefix,
        source_address_prefixes=rule.source_address_prefixes,
        destination_address_prefix=rule.destination_address_prefix,
        destination_address_prefixes=rule.destination_address_prefixes,
        source_application_security_groups=_asg_models(rule.source_application_security_groups),
        destination_application_security_groups=_asg_models(rule.destination_application_security_groups),
    )


class AzureNetworkProvider:
    """Remote create operations for NSGs and their rules"""

    def __init__(self, subscription_id: str, credential: Any = None,
                 network_client: Optional[NetworkManagementClient] = None,
                 resource_client: Optional[ResourceManagementClient] = None):
        self.subscription_id = subscription_id
        if network_client is None or resource_client is None:
            credential = credential or DefaultAzureCredential()
        self.network_client = network_client or NetworkManagementClient(
            credential=credential,
            subscription_id=subscription_id,
        )
        self.resource_client = resource_client or ResourceManagementClient(
            credential=credential,
            subscription_id=subscription_id,
        )

    @classmethod
    def from_environment(cls, subscription_id: Optional[str] = None) -> "AzureNetworkProvider":
        """Build a provider from AZURE_* environment variables, CLI value first"""
        subscription_id = subscription_id or os.environ.get("AZURE_SUBSCRIPTION_ID", "")
        if not subscription_id:
            raise ConfigError("AZURE_SUBSCRIPTION_ID is required to provision resources")
        return cls(subscription_id=subscription_id)

    def resource_group_location(self, resource_group_name: str) -> str:
        """Location of an existing resource group"""
        return self.resource_client.resource_groups.get(resource_group_name).location

    def create_network_security_group(self, resource_group_name: str, location: Optional[str],
                                      security_group_name: str) -> SecurityGroupRef:
        """Create (or update) an empty NSG. Location defaults to the resource group's."""
        try:
            location = location or self.resource_group_location(resource_group_name)
            poller = self.network_client.network_security_groups.begin_create_or_update(
                resource_group_name=resource_group_name,
                network_security_group_name=security_group_name,
                parameters=NetworkSecurityGroup(location=location, security_rules=[]),
            )
            nsg = poller.result()
        except AzureError as e:
            logger.error(f"Failed to create NSG '{security_group_name}' in '{resource_group_name}': {e}")
            raise

        logger.info(f"Created NSG '{nsg.name}' in resource group '{resource_group_name}' ({location})")
        return SecurityGroupRef(id=nsg.id, name=nsg.name)

    def create_security_rule(self, resource_name: str, resource_group_name: str,
                             network_security_group_name: str, rule: NormalizedRule) -> Dict[str, Any]:
        """Create (or update) one security rule inside an existing NSG"""
        try:
            poller = self.network_client.security_rules.begin_create_or_update(
                resource_group_name=resource_group_name,
                network_security_group_name=network_security_group_name,
                security_rule_name=rule.security_rule_name,
                security_rule_parameters=to_security_rule(rule),
            )
            created = poller.result()
        except AzureError as e:
            logger.error(f"Failed to create security rule {resource_name} ('{rule.security_rule_name}'): {e}")
            raise

        logger.info(f"Created security rule {resource_name} ('{rule.security_rule_name}', priority {rule.priority})")
        return {
            'resource_name': resource_name,
            'id': created.id,
            'name': created.name,
            'provisioning_state': created.provisioning_state,
        }

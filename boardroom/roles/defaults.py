"""Default board and identity provisioning."""

import uuid

from ..agents.descriptor import RoleDescriptor
from ..logging_config import get_logger
from ..models import AgentRecord, AgentStatus
from ..storage import IStorage
from .ceo import ceo_role
from .cfo import cfo_role
from .cmo import cmo_role
from .cto import cto_role

logger = get_logger(__name__)


def default_roles() -> list[RoleDescriptor]:
    """The four default roles in start order, lead first."""
    return [ceo_role(), cto_role(), cmo_role(), cfo_role()]


async def provision_agents(
    storage: IStorage, descriptors: list[RoleDescriptor]
) -> list[AgentRecord]:
    """Create identities for roles that have none yet; return all of them."""
    records = []
    for descriptor in descriptors:
        record = await storage.get_agent_by_role(descriptor.role)
        if record is None:
            record = await storage.save_agent(
                AgentRecord(
                    id=str(uuid.uuid4()),
                    name=descriptor.name,
                    role=descriptor.role,
                    status=AgentStatus.OFFLINE,
                    description=descriptor.description,
                    capabilities=list(descriptor.capabilities),
                )
            )
            logger.info("Provisioned agent %s (%s)", record.name, record.role.value)
        records.append(record)
    return records

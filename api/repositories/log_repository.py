import json
import uuid
from typing import Dict, List
from datetime import datetime, timezone

from database import BaseRepository
from models.log_entry import EntityType

# Node label per audited entity type
ENTITY_LABELS = {
    EntityType.COMPANIES: "Company",
    EntityType.DRIVER_APPLICATIONS: "DriverApplication",
    EntityType.DRIVERS: "Driver",
}


class EntityNotFoundError(LookupError):
    """Raised when the entity a log entry targets does not exist."""


class LogRepository(BaseRepository):
    """Append-only audit trail stored in the ``logs`` property of each entity.

    An append reads the whole array, adds the entry and writes the whole array
    back. Concurrent appends to the same entity can lose an entry.
    """

    def append(self, entity_type: EntityType, entity_id: str, entry: Dict) -> Dict:
        """Append a log entry to an entity.

        Args:
            entity_type: Which kind of entity the entry concerns
            entity_id: ID of that entity
            entry: Entry fields without ``id`` and ``created_at``

        Returns:
            dict: The stored entry with ``id`` and ``created_at`` filled in

        Raises:
            EntityNotFoundError: If the entity does not exist
        """
        label = ENTITY_LABELS[EntityType(entity_type)]
        new_entry = {
            **entry,
            "id": str(uuid.uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        logs = self.get_logs(entity_type, entity_id)
        logs.append(new_entry)

        query = f"""
        MATCH (n:{label} {{id: $id}})
        SET n.logs = $logs
        RETURN n.id as id
        """
        result = self.execute_query(query, {"id": entity_id, "logs": json.dumps(logs)})
        if not result:
            raise EntityNotFoundError(f"{entity_type} {entity_id} not found")
        return new_entry

    def get_logs(self, entity_type: EntityType, entity_id: str) -> List[Dict]:
        """Get the audit trail of an entity, oldest first.

        Raises:
            EntityNotFoundError: If the entity does not exist
        """
        label = ENTITY_LABELS[EntityType(entity_type)]
        query = f"""
        MATCH (n:{label} {{id: $id}})
        RETURN n.logs as logs
        """
        result = self.execute_query(query, {"id": entity_id})
        if not result:
            raise EntityNotFoundError(f"{entity_type} {entity_id} not found")
        return json.loads(result[0]['logs']) if result[0]['logs'] else []

import uuid
from typing import Dict, List, Optional
from datetime import datetime, timezone

from database import BaseRepository
from models.driver import DriverCreate


class DriverRepository(BaseRepository):
    """Repository for Driver entity operations"""

    json_fields = ("logs",)

    def create(self, driver: DriverCreate) -> Dict:
        """Create a driver node hired from an application.

        The driver is linked to its company and keeps ``application_id`` as a
        plain lookup key back to the source application.
        """
        now = datetime.now(timezone.utc)
        data = driver.model_dump(mode="json")
        data.update({
            "id": str(uuid.uuid4()),
            "created_at": now,
            "updated_at": now,
            "logs": [],
        })

        query = """
        CREATE (d:Driver)
        SET d = $props
        WITH d
        OPTIONAL MATCH (c:Company {id: d.company_id})
        FOREACH (_ IN CASE WHEN c IS NULL THEN [] ELSE [1] END |
            MERGE (c)-[:EMPLOYS]->(d)
        )
        RETURN d
        """
        result = self.execute_query(query, {"props": self.to_properties(data)})
        return self.from_properties(result[0]['d']) if result else None

    def get_by_id(self, driver_id: str) -> Optional[Dict]:
        """Get a driver by ID"""
        query = """
        MATCH (d:Driver {id: $id})
        RETURN d
        """
        result = self.execute_query(query, {"id": driver_id})
        return self.from_properties(result[0]['d']) if result else None

    def get_by_application(self, application_id: str) -> Optional[Dict]:
        """Get the driver hired from an application, if any"""
        query = """
        MATCH (d:Driver {application_id: $application_id})
        RETURN d
        """
        result = self.execute_query(query, {"application_id": application_id})
        return self.from_properties(result[0]['d']) if result else None

    def get_all(self, skip: int = 0, limit: int = 100, filters: Dict = None) -> List[Dict]:
        """Get drivers with pagination and filters"""
        where_clauses = []
        params = {"skip": skip, "limit": limit}

        if filters:
            if filters.get('company_id'):
                where_clauses.append("d.company_id = $company_id")
                params['company_id'] = filters['company_id']

            if filters.get('status'):
                where_clauses.append("d.status = $status")
                params['status'] = filters['status']

        where_clause = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        query = f"""
        MATCH (d:Driver)
        {where_clause}
        RETURN d
        ORDER BY d.hire_date DESC
        SKIP $skip
        LIMIT $limit
        """

        result = self.execute_query(query, params)
        return [self.from_properties(record['d']) for record in result]

    def update(self, driver_id: str, updates: Dict) -> Optional[Dict]:
        """Update a driver's properties"""
        params = self.to_properties(updates)
        params['updated_at'] = datetime.now(timezone.utc).isoformat()

        query = """
        MATCH (d:Driver {id: $id})
        SET d += $props
        RETURN d
        """

        result = self.execute_query(query, {"id": driver_id, "props": params})
        return self.from_properties(result[0]['d']) if result else None

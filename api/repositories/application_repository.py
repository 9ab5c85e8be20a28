import uuid
from typing import Dict, List, Optional
from datetime import datetime, timezone

from database import BaseRepository
from models.application import ApplicationStatus, DriverApplicationCreate


class ApplicationRepository(BaseRepository):
    """Repository for DriverApplication nodes.

    History arrays, consents, background check results and the audit trail are
    kept as JSON text on the node.
    """

    json_fields = ("addresses", "jobs", "consents", "background_check_results", "logs")

    def create(self, application: DriverApplicationCreate,
               status: ApplicationStatus = ApplicationStatus.NEW) -> Dict:
        """Create a new application node and link it to its company.

        Args:
            application: Validated applicant payload
            status: Initial status, ``New`` for submissions or ``draft``

        Returns:
            dict: Created application data or None if creation fails
        """
        now = datetime.now(timezone.utc)
        data = application.model_dump(mode="json")
        data.update({
            "id": str(uuid.uuid4()),
            "status": status,
            "background_check_status": "pending",
            "background_check_results": None,
            "submitted_at": now if status != ApplicationStatus.DRAFT else None,
            "created_at": now,
            "updated_at": now,
            "logs": [],
        })

        query = """
        CREATE (a:DriverApplication)
        SET a = $props
        WITH a
        OPTIONAL MATCH (c:Company {id: a.company_id})
        FOREACH (_ IN CASE WHEN c IS NULL THEN [] ELSE [1] END |
            MERGE (c)-[:RECEIVED]->(a)
        )
        RETURN a
        """
        result = self.execute_query(query, {"props": self.to_properties(data)})
        return self.from_properties(result[0]['a']) if result else None

    def get_by_id(self, application_id: str) -> Optional[Dict]:
        """Get an application by ID"""
        query = """
        MATCH (a:DriverApplication {id: $id})
        RETURN a
        """
        result = self.execute_query(query, {"id": application_id})
        return self.from_properties(result[0]['a']) if result else None

    def get_all(self, skip: int = 0, limit: int = 100, filters: Dict = None) -> List[Dict]:
        """Get applications newest first, with pagination and filters"""
        where_clauses = []
        params = {"skip": skip, "limit": limit}

        if filters:
            if filters.get('status'):
                where_clauses.append("a.status = $status")
                params['status'] = filters['status']

            if filters.get('company_id'):
                where_clauses.append("a.company_id = $company_id")
                params['company_id'] = filters['company_id']

            if filters.get('submitted_after'):
                where_clauses.append("a.submitted_at >= $submitted_after")
                params['submitted_after'] = filters['submitted_after'].isoformat()

            if filters.get('submitted_before'):
                where_clauses.append("a.submitted_at <= $submitted_before")
                params['submitted_before'] = filters['submitted_before'].isoformat()

        where_clause = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        query = f"""
        MATCH (a:DriverApplication)
        {where_clause}
        RETURN a
        ORDER BY a.created_at DESC
        SKIP $skip
        LIMIT $limit
        """

        result = self.execute_query(query, params)
        return [self.from_properties(record['a']) for record in result]

    def update(self, application_id: str, updates: Dict) -> Optional[Dict]:
        """Apply a partial update and return the stored application"""
        params = self.to_properties(updates)
        params['updated_at'] = datetime.now(timezone.utc).isoformat()

        query = """
        MATCH (a:DriverApplication {id: $id})
        SET a += $props
        RETURN a
        """

        result = self.execute_query(query, {"id": application_id, "props": params})
        return self.from_properties(result[0]['a']) if result else None

    def exists(self, application_id: str) -> bool:
        """Check if an application exists"""
        query = """
        MATCH (a:DriverApplication {id: $id})
        RETURN count(a) > 0 as exists
        """
        result = self.execute_query(query, {"id": application_id})
        return result[0]['exists'] if result else False

    def get_status_counts(self, company_id: Optional[str] = None) -> Dict[str, int]:
        """Count applications per status, optionally for one company"""
        where_clause = "WHERE a.company_id = $company_id" if company_id else ""
        query = f"""
        MATCH (a:DriverApplication)
        {where_clause}
        RETURN a.status as status, count(a) as total
        """
        result = self.execute_query(query, {"company_id": company_id})
        return {record['status']: record['total'] for record in result}

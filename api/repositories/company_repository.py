import uuid
from typing import Dict, List, Optional
from datetime import datetime, timezone

from database import BaseRepository
from models.company import CompanyCreate


class CompanyRepository(BaseRepository):
    """Repository for Company entity operations"""

    json_fields = ("logs",)

    def create(self, company: CompanyCreate) -> Dict:
        """Create a new company node"""
        now = datetime.now(timezone.utc)
        data = company.model_dump(mode="json")
        data.update({
            "id": str(uuid.uuid4()),
            "created_at": now,
            "updated_at": now,
            "logs": [],
        })

        query = """
        CREATE (c:Company)
        SET c = $props
        RETURN c
        """
        result = self.execute_query(query, {"props": self.to_properties(data)})
        return self.from_properties(result[0]['c']) if result else None

    def get_by_id(self, company_id: str) -> Optional[Dict]:
        """Get a company by ID"""
        query = """
        MATCH (c:Company {id: $id})
        RETURN c
        """
        result = self.execute_query(query, {"id": company_id})
        return self.from_properties(result[0]['c']) if result else None

    def get_by_slug(self, slug: str) -> Optional[Dict]:
        """Get a company by the slug of its public form"""
        query = """
        MATCH (c:Company {slug: $slug})
        RETURN c
        """
        result = self.execute_query(query, {"slug": slug})
        return self.from_properties(result[0]['c']) if result else None

    def get_all(self, skip: int = 0, limit: int = 100) -> List[Dict]:
        """Get all companies with pagination"""
        query = """
        MATCH (c:Company)
        RETURN c
        ORDER BY c.name
        SKIP $skip
        LIMIT $limit
        """
        result = self.execute_query(query, {"skip": skip, "limit": limit})
        return [self.from_properties(record['c']) for record in result]

    def exists(self, company_id: str) -> bool:
        """Check if a company exists"""
        query = """
        MATCH (c:Company {id: $id})
        RETURN count(c) > 0 as exists
        """
        result = self.execute_query(query, {"id": company_id})
        return result[0]['exists'] if result else False

    def slug_exists(self, slug: str) -> bool:
        """Check if a slug is already taken"""
        query = """
        MATCH (c:Company {slug: $slug})
        RETURN count(c) > 0 as exists
        """
        result = self.execute_query(query, {"slug": slug})
        return result[0]['exists'] if result else False

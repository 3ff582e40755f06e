from pydantic import BaseModel


class CatalogEntryRead(BaseModel):
    id: int
    name: str

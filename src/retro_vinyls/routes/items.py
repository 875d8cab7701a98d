"""
# Vinyl Record Routes

This module provides the **REST API endpoints** for the vinyl record catalogue.

## API Endpoints

- `GET /api/items` - List all records
- `GET /api/items/{item_id}` - Fetch one record by ObjectId
- `POST /api/items` - Create a record

## Request Handling

Input is validated before the database is touched: malformed ObjectIds are rejected with
400 before any query, and `POST` bodies are validated by `VinylCreateRequest` before the
handler runs. Only then does the handler ask the connection manager for a database handle;
if none can be produced the request fails with 503.

## Usage Examples

```python
response = await client.post("/api/items", json={
    "name": "Kind of Blue",
    "artist": "Miles Davis",
    "description": "First pressing, 6-eye label",
    "price": 324.99,
    "image": "https://example.com/kind-of-blue.jpg",
    "genre": "Jazz",
    "year": 1959,
})
item_id = response.json()["data"]["_id"]

record = (await client.get(f"/api/items/{item_id}")).json()["data"]
```

## Module Attributes

Attributes:
    router (APIRouter): FastAPI router with `/api/items` prefix
"""

from fastapi import APIRouter, Depends

from retro_vinyls.database.manager import DatabaseManager
from retro_vinyls.managers.logging_manager import get_logger
from retro_vinyls.models.vinyl_models import VinylCreateRequest, VinylRecord
from retro_vinyls.routes.dependencies import database_operation, get_db_manager, parse_object_id
from retro_vinyls.utils.exceptions import NotFoundError
from retro_vinyls.utils.responses import json_response

logger = get_logger(prefix="[ITEMS]")

router = APIRouter(prefix="/api/items", tags=["Items"])


@router.get("")
async def list_items(manager: DatabaseManager = Depends(get_db_manager)):
    """Get all vinyl records."""
    await manager.require_database()
    collection = manager.get_collection()

    async with database_operation(manager, "fetch items"):
        documents = await collection.find({}).to_list(length=None)

    records = [VinylRecord.from_document(document).to_response() for document in documents]
    return json_response({"success": True, "count": len(records), "data": records})


@router.get("/{item_id}")
async def get_item(item_id: str, manager: DatabaseManager = Depends(get_db_manager)):
    """Get a single vinyl record by its ObjectId."""
    object_id = parse_object_id(item_id)

    await manager.require_database()
    collection = manager.get_collection()

    async with database_operation(manager, "fetch item"):
        document = await collection.find_one({"_id": object_id})

    if document is None:
        raise NotFoundError(f"No vinyl record found with ID: {item_id}")
    return json_response({"success": True, "data": VinylRecord.from_document(document).to_response()})


@router.post("", status_code=201)
async def create_item(payload: VinylCreateRequest, manager: DatabaseManager = Depends(get_db_manager)):
    """Add a new vinyl record."""
    document = payload.to_document()

    await manager.require_database()
    collection = manager.get_collection()

    async with database_operation(manager, "add item"):
        result = await collection.insert_one(document)

    logger.info("Added new vinyl record: %s by %s", payload.name, payload.artist)
    record = VinylRecord.from_document({**document, "_id": result.inserted_id})
    return json_response(
        {"success": True, "message": "Vinyl record added successfully", "data": record.to_response()},
        status_code=201,
    )

"""
# Seed Route

`POST /api/seed` replaces the vinyl collection with the sample catalogue from
`routes.seed_data`. It is a development aid: in production it is refused with 403
before the database is contacted.
"""

from fastapi import APIRouter, Depends

from retro_vinyls.config import Settings
from retro_vinyls.database.manager import DatabaseManager
from retro_vinyls.managers.logging_manager import get_logger
from retro_vinyls.routes.dependencies import database_operation, get_db_manager, get_settings
from retro_vinyls.routes.seed_data import get_seed_documents
from retro_vinyls.utils.exceptions import ForbiddenError
from retro_vinyls.utils.responses import json_response

logger = get_logger(prefix="[SEED]")

router = APIRouter(prefix="/api", tags=["Development"])


@router.post("/seed")
async def seed_database(
    manager: DatabaseManager = Depends(get_db_manager),
    config: Settings = Depends(get_settings),
):
    """Replace all vinyl records with the sample catalogue."""
    if not config.seeding_allowed:
        logger.warning("Seeding request refused in %s mode", config.ENVIRONMENT)
        raise ForbiddenError("Seeding is disabled in production", error="Seeding not allowed")

    await manager.require_database()
    collection = manager.get_collection(config.MONGODB_COLLECTION)
    documents = get_seed_documents()

    async with database_operation(manager, "seed the database"):
        await collection.delete_many({})
        result = await collection.insert_many(documents)

    inserted_ids = [str(inserted_id) for inserted_id in result.inserted_ids]
    logger.info("Seeded %d vinyl records", len(inserted_ids))
    return json_response(
        {
            "success": True,
            "message": "Database seeded successfully",
            "insertedCount": len(inserted_ids),
            "insertedIds": inserted_ids,
        }
    )

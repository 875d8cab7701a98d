"""
# Routes Package

FastAPI routers for the RetroVinyls API.

- **`main_router`**: `GET /` and `GET /health`
- **`items_router`**: `GET /api/items`, `GET /api/items/{item_id}`, `POST /api/items`
- **`seed_router`**: `POST /api/seed`
"""

from retro_vinyls.routes.items import router as items_router
from retro_vinyls.routes.main import router as main_router
from retro_vinyls.routes.seed import router as seed_router

__all__ = ["items_router", "main_router", "seed_router"]

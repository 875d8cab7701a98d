"""
# Vinyl Seed Data

This module defines the **sample catalogue** loaded by `POST /api/seed` during development.

## Usage

```python
from retro_vinyls.routes.seed_data import get_seed_documents

documents = get_seed_documents()
await collection.delete_many({})
await collection.insert_many(documents)
```

Each call returns fresh dictionaries (validated through `VinylCreateRequest`) with
server-side timestamps, so the fixture itself is never mutated by the driver.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from retro_vinyls.models.vinyl_models import VinylCreateRequest, utc_now

ROCK_IMAGE = (
    "https://images.unsplash.com/photo-1493225457124-a3eb161ffa5f"
    "?ixlib=rb-4.0.3&auto=format&fit=crop&w=800&q=80"
)
JAZZ_IMAGE = (
    "https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b"
    "?ixlib=rb-4.0.3&auto=format&fit=crop&w=800&q=80"
)

SAMPLE_VINYLS: List[Dict[str, Any]] = [
    {
        "name": "Abbey Road",
        "artist": "The Beatles",
        "description": (
            "The Beatles' eleventh studio album, recorded at Abbey Road Studios. Features iconic tracks "
            "like 'Come Together' and 'Here Comes the Sun'. This original UK pressing includes the rare "
            "misprint on the back cover, making it a true collector's piece."
        ),
        "price": 189.99,
        "originalPrice": 240.0,
        "image": ROCK_IMAGE,
        "genre": "Rock",
        "year": 1969,
        "condition": "Near Mint",
        "rating": 4.9,
        "inStock": True,
    },
    {
        "name": "Kind of Blue",
        "artist": "Miles Davis",
        "description": (
            "Widely considered one of the greatest jazz albums of all time. This first pressing Columbia "
            "6-eye label features the legendary quintet with John Coltrane, Bill Evans, and Cannonball "
            "Adderley. A masterpiece of modal jazz in pristine condition."
        ),
        "price": 324.99,
        "originalPrice": 400.0,
        "image": JAZZ_IMAGE,
        "genre": "Jazz",
        "year": 1959,
        "condition": "Mint",
        "rating": 4.8,
        "inStock": True,
    },
    {
        "name": "The Dark Side of the Moon",
        "artist": "Pink Floyd",
        "description": (
            "Pink Floyd's eighth studio album and one of the best-selling albums of all time. This "
            "original Harvest pressing features the iconic prism artwork and includes the solid blue "
            "triangle. A progressive rock masterpiece with impeccable sound quality."
        ),
        "price": 456.99,
        "originalPrice": 600.0,
        "image": ROCK_IMAGE,
        "genre": "Progressive Rock",
        "year": 1973,
        "condition": "Mint",
        "rating": 5.0,
        "inStock": True,
    },
    {
        "name": "What's Going On",
        "artist": "Marvin Gaye",
        "description": (
            "Marvin Gaye's socially conscious masterpiece addressing war, poverty, and environmental "
            "issues. This Tamla original pressing with gatefold sleeve intact represents soul music at "
            "its finest."
        ),
        "price": 198.99,
        "originalPrice": 260.0,
        "image": JAZZ_IMAGE,
        "genre": "Soul",
        "year": 1971,
        "condition": "Very Good+",
        "rating": 4.7,
        "inStock": True,
    },
    {
        "name": "Pet Sounds",
        "artist": "The Beach Boys",
        "description": (
            "Brian Wilson's ambitious and influential album that pushed the boundaries of pop music. This "
            "Capitol mono pressing showcases the production techniques and orchestral arrangements that "
            "inspired Sgt. Pepper's."
        ),
        "price": 342.99,
        "originalPrice": 450.0,
        "image": ROCK_IMAGE,
        "genre": "Pop",
        "year": 1966,
        "condition": "Near Mint",
        "rating": 4.9,
        "inStock": True,
    },
    {
        "name": "Blue Train",
        "artist": "John Coltrane",
        "description": (
            "John Coltrane's only album as leader for Blue Note Records. This original pressing with Van "
            "Gelder stamp features Lee Morgan, Curtis Fuller, and Kenny Drew. A hard bop classic in "
            "excellent condition."
        ),
        "price": 289.99,
        "originalPrice": 380.0,
        "image": JAZZ_IMAGE,
        "genre": "Jazz",
        "year": 1957,
        "condition": "Excellent",
        "rating": 4.8,
        "inStock": True,
    },
    {
        "name": "Rumours",
        "artist": "Fleetwood Mac",
        "description": (
            "One of the best-selling albums of all time, recorded during the band's personal turmoil. "
            "This original pressing features hits like 'Go Your Own Way' and 'Dreams'."
        ),
        "price": 156.99,
        "originalPrice": 200.0,
        "image": ROCK_IMAGE,
        "genre": "Rock",
        "year": 1977,
        "condition": "Very Good+",
        "rating": 4.6,
        "inStock": True,
    },
    {
        "name": "A Love Supreme",
        "artist": "John Coltrane",
        "description": (
            "Coltrane's spiritual masterpiece and one of the most important jazz albums ever recorded. "
            "This original Impulse pressing presents a deeply moving four-part suite."
        ),
        "price": 412.99,
        "originalPrice": 520.0,
        "image": JAZZ_IMAGE,
        "genre": "Jazz",
        "year": 1965,
        "condition": "Near Mint",
        "rating": 4.9,
        "inStock": True,
    },
]


def get_seed_documents(now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Return the sample catalogue as insert-ready MongoDB documents.

    Args:
        now (Optional[datetime]): Timestamp for `createdAt` / `updatedAt`.

    Returns:
        List[Dict[str, Any]]: One new document per sample record.
    """
    timestamp = now or utc_now()
    return [VinylCreateRequest.model_validate(item).to_document(timestamp) for item in SAMPLE_VINYLS]

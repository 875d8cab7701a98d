"""
# Vinyl Record Models

This module defines the data structures for the **vinyl record catalogue**: the request model
used to validate new records, and the response model used to render stored documents.

## Domain Model Overview

- **VinylCreateRequest**: Client payload for `POST /api/items`. All validation happens here,
  before any database I/O.
- **VinylRecord**: A stored record as returned by the API, with its string `_id` and the
  server-assigned `createdAt` / `updatedAt` timestamps.

Field names use camelCase on the wire and in MongoDB (`originalPrice`, `inStock`, ...), and
snake_case in Python.

## Validation Policy

| Field | Rule |
|-------|------|
| `name`, `artist`, `description`, `image`, `genre` | required, non-blank strings (stripped) |
| `price` | required finite number > 0 |
| `originalPrice` | optional finite number > 0, stored as `null` when absent |
| `year` | required integer, 1900 to the current calendar year |
| `condition` | optional, defaults to `"Near Mint"` |
| `rating` | optional number 1-5, defaults to `4.5` |
| `inStock` | optional boolean, defaults to `true` |

Timestamps sent by the client are ignored.

## Usage Example

```python
request = VinylCreateRequest.model_validate(payload)
document = request.to_document()
result = await collection.insert_one(document)
record = VinylRecord.from_document({"_id": result.inserted_id, **document})
```
"""

from datetime import datetime, timezone
import math
from typing import Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

DEFAULT_CONDITION = "Near Mint"
DEFAULT_RATING = 4.5
MIN_YEAR = 1900
MIN_RATING = 1
MAX_RATING = 5


def _finite_number(value: Any) -> Optional[float]:
    """Return `value` as a finite float, or `None` for non-numbers, booleans, NaN and infinities."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VinylCreateRequest(BaseModel):
    """Payload for creating a vinyl record.

    Attributes:
        name (str): Album title.
        artist (str): Performing artist.
        description (str): Free-text description of the pressing.
        price (float): Asking price, strictly positive.
        original_price (Optional[float]): Price before discount, strictly positive if given.
        image (str): Cover image URL.
        genre (str): Musical genre.
        year (int): Release year, 1900 to the current year.
        condition (str): Grading of the record.
        rating (float): Rating between 1 and 5.
        in_stock (bool): Availability flag.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., description="Album title")
    artist: str = Field(..., description="Performing artist")
    description: str = Field(..., description="Description of the pressing")
    price: float = Field(..., description="Asking price")
    original_price: Optional[float] = Field(None, alias="originalPrice", description="Price before discount")
    image: str = Field(..., description="Cover image URL")
    genre: str = Field(..., description="Musical genre")
    year: int = Field(..., description="Release year")
    condition: str = Field(DEFAULT_CONDITION, description="Record grading")
    rating: float = Field(DEFAULT_RATING, description="Rating from 1 to 5")
    in_stock: bool = Field(True, alias="inStock", description="Availability flag")

    @field_validator("name", "artist", "description", "image", "genre", mode="before")
    @classmethod
    def non_blank_string(cls, v: Any, info: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise PydanticCustomError(
                "blank_field", "{field} is required and must be a non-empty string", {"field": info.field_name}
            )
        return v.strip()

    @field_validator("price", mode="before")
    @classmethod
    def positive_price(cls, v: Any) -> float:
        price = _finite_number(v)
        if price is None or price <= 0:
            raise PydanticCustomError("invalid_price", "Price must be a positive number")
        return price

    @field_validator("original_price", mode="before")
    @classmethod
    def positive_original_price(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        price = _finite_number(v)
        if price is None or price <= 0:
            raise PydanticCustomError("invalid_original_price", "Original price must be a positive number")
        return price

    @field_validator("year", mode="before")
    @classmethod
    def year_in_range(cls, v: Any) -> int:
        current_year = utc_now().year
        year = _finite_number(v)
        valid = year is not None and year.is_integer() and MIN_YEAR <= year <= current_year
        if not valid:
            raise PydanticCustomError(
                "invalid_year",
                "Year must be an integer between {min_year} and {max_year}",
                {"min_year": MIN_YEAR, "max_year": current_year},
            )
        return int(year)

    @field_validator("condition", mode="before")
    @classmethod
    def default_condition(cls, v: Any) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CONDITION
        if not isinstance(v, str):
            raise PydanticCustomError("invalid_condition", "Condition must be a string")
        return v.strip()

    @field_validator("rating", mode="before")
    @classmethod
    def rating_in_range(cls, v: Any) -> float:
        if v is None:
            return DEFAULT_RATING
        rating = _finite_number(v)
        if rating is None or not MIN_RATING <= rating <= MAX_RATING:
            raise PydanticCustomError("invalid_rating", "Rating must be between 1 and 5")
        return rating

    @field_validator("in_stock", mode="before")
    @classmethod
    def boolean_in_stock(cls, v: Any) -> bool:
        if v is None:
            return True
        if not isinstance(v, bool):
            raise PydanticCustomError("invalid_in_stock", "inStock must be a boolean")
        return v

    def to_document(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Build the MongoDB document for this record with server-side timestamps.

        Args:
            now (Optional[datetime]): Timestamp to use; defaults to the current UTC time.

        Returns:
            Dict[str, Any]: The document, keyed by the camelCase field names.
        """
        timestamp = now or utc_now()
        document = self.model_dump(by_alias=True)
        document["createdAt"] = timestamp
        document["updatedAt"] = timestamp
        return document


class VinylRecord(BaseModel):
    """A stored vinyl record as returned by the API.

    Attributes:
        id (str): The record's ObjectId as a hex string (`_id` on the wire).
        created_at (Optional[datetime]): Creation timestamp.
        updated_at (Optional[datetime]): Last update timestamp.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str
    artist: str
    description: str
    price: float
    original_price: Optional[float] = Field(None, alias="originalPrice")
    image: str
    genre: str
    year: int
    condition: str = DEFAULT_CONDITION
    rating: float = DEFAULT_RATING
    in_stock: bool = Field(True, alias="inStock")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def object_id_to_str(cls, v: Any) -> str:
        if isinstance(v, ObjectId):
            return str(v)
        return v

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "VinylRecord":
        return cls.model_validate(document)

    def to_response(self) -> Dict[str, Any]:
        """Render the record as JSON-compatible data with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")

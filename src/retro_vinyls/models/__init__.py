"""
# Data Models Package

Pydantic models for request validation and response rendering.

## Usage Example

```python
from pydantic import ValidationError
from retro_vinyls.models import VinylCreateRequest

try:
    payload = VinylCreateRequest.model_validate({"name": "Blue Train", "price": -5})
except ValidationError as e:
    print(f"Invalid data: {e}")
```
"""

from .vinyl_models import *

__all__ = [
    "VinylCreateRequest",
    "VinylRecord",
    "DEFAULT_CONDITION",
    "DEFAULT_RATING",
]

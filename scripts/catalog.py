"""Read-only vehicle catalog loaded from a JSON file.

The JSON layout mirrors the web catalog (camelCase keys):

{
    "vehicles": [
        {
            "id": "excavator-001",
            "name": "Caterpillar 320 Excavator",
            "category": "Excavator",
            "description": "...",
            "specifications": {"weight": "20,000 kg", "maxReach": "9.7 m"},
            "dailyRate": 350,
            "imageUrl": "/vehicle-images/excavator.jpg"
        }
    ]
}
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CATALOG = PROJECT_ROOT / "catalog" / "vehicles.json"


@dataclass(frozen=True)
class Vehicle:
    id: str
    name: str
    category: str
    description: str
    daily_rate: float
    specifications: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    image_url: Optional[str] = None

    def __post_init__(self):
        if self.daily_rate <= 0:
            raise ValueError(f"Vehicle {self.id}: daily rate must be positive, got {self.daily_rate}")
        if not isinstance(self.specifications, MappingProxyType):
            object.__setattr__(self, "specifications", MappingProxyType(dict(self.specifications)))


def vehicle_from_dict(data: dict) -> Vehicle:
    return Vehicle(
        id=data["id"],
        name=data["name"],
        category=data.get("category", ""),
        description=data.get("description", ""),
        daily_rate=float(data["dailyRate"]),
        specifications=data.get("specifications") or {},
        image_url=data.get("imageUrl"),
    )


def load_vehicles(path=DEFAULT_CATALOG):
    """Load the catalog file and return a tuple of Vehicles in file order."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    entries = data.get("vehicles", data) if isinstance(data, dict) else data
    return tuple(vehicle_from_dict(e) for e in entries)


def get_all_vehicles(path=DEFAULT_CATALOG):
    return load_vehicles(path)


def get_vehicle_by_id(vehicles, vehicle_id: str) -> Optional[Vehicle]:
    return next((v for v in vehicles if v.id == vehicle_id), None)

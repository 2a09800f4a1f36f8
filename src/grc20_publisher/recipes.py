"""
Recipes: the concrete edits this project publishes.

Each recipe fills an EditBuilder and names the edit. They differ only in the
properties, types and entities declared and in their default target space.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .graph import EditBuilder
from .schema import Edit, Network, Value, ValueType

RecipeFn = Callable[[EditBuilder, str], Edit]


@dataclass(frozen=True)
class Recipe:
    name: str
    description: str
    build: RecipeFn
    space_id: str
    network: Network


def build_image_edit(builder: EditBuilder, timestamp: str) -> Edit:
    """An Image type with URL and rating properties, plus one test image."""
    image_url = builder.create_property("ImageUrl", ValueType.URL)
    rating = builder.create_property("Rating", ValueType.NUMBER)
    image_type = builder.create_type("Image", properties=[image_url.id, rating.id])

    image = builder.create_entity(
        name=f"Test Image {timestamp}",
        types=[image_type.id],
        properties={
            image_url.id: Value(type=ValueType.URL, value="https://example.com/image.jpg"),
            rating.id: Value(type=ValueType.NUMBER, value="5"),
        },
    )
    return builder.to_edit(f"Create Test Image {timestamp}", author=image.id)


def build_camera_edit(builder: EditBuilder, timestamp: str) -> Edit:
    """Camera ownership schema: Person, Camera and Owns types."""
    brand = builder.create_property("Brand", ValueType.TEXT)
    model = builder.create_property("Model", ValueType.TEXT)
    color = builder.create_property("Color", ValueType.TEXT)
    megapixels = builder.create_property("Megapixels", ValueType.NUMBER)
    purchase_date = builder.create_property("Purchase Date", ValueType.TIME)

    builder.create_type("Person")
    builder.create_type(
        "Camera",
        properties=[brand.id, model.id, color.id, megapixels.id],
    )
    builder.create_type(
        "Owns",
        properties=[purchase_date.id],
        description="Defines ownership relationships",
    )
    return builder.to_edit("Create Properties and Types")


RECIPES: Dict[str, Recipe] = {
    "image": Recipe(
        name="image",
        description="Image type with a test image entity",
        build=build_image_edit,
        space_id="MucL11M5HLWvLSVryrNKPB",
        network=Network.MAINNET,
    ),
    "camera": Recipe(
        name="camera",
        description="Person/Camera/Owns schema",
        build=build_camera_edit,
        space_id="FuvKkspixpHymrWbrRZDfc",
        network=Network.TESTNET,
    ),
}


def list_recipes() -> List[Recipe]:
    return list(RECIPES.values())


def get_recipe(name: str) -> Recipe:
    try:
        return RECIPES[name]
    except KeyError:
        known = ", ".join(sorted(RECIPES))
        raise KeyError(f"Unknown recipe '{name}'. Known recipes: {known}") from None


def build_recipe(
    name: str,
    builder: Optional[EditBuilder] = None,
    timestamp: Optional[str] = None,
) -> Edit:
    """Build a recipe's edit with a fresh builder unless one is given."""
    recipe = get_recipe(name)
    builder = builder or EditBuilder()
    timestamp = timestamp or datetime.now(timezone.utc).isoformat()
    return recipe.build(builder, timestamp)

"""Generate realistic mock catalog data for testing."""

import json
import random
from pathlib import Path

from faker import Faker

from supra.models.catalog import Dish, Restaurant

fake = Faker()


class MockDataGenerator:
    """Generate a mock restaurant catalog of Georgian dishes."""

    ATMOSPHERES = ["family", "romantic", "live music", "terrace", "wine bar", "traditional"]
    NAME_PREFIXES = ["Sakhli", "Supra", "Tamada", "Kakheti", "Mtsvane", "Dzveli Tbilisi"]
    HOURS = ["10:00-23:00", "11:00-00:00", "12:00-22:00", "09:00-21:00"]

    # (name, description, base price, ingredients, allergens)
    DISH_TEMPLATES = {
        "khachapuri": [
            ("Adjarian Khachapuri", "Boat-shaped bread with cheese, butter and egg", 18.0,
             ["flour", "sulguni", "egg", "butter"], ["gluten", "dairy", "egg"]),
            ("Imeretian Khachapuri", "Round bread filled with imeruli cheese", 14.0,
             ["flour", "imeruli cheese"], ["gluten", "dairy"]),
            ("Megrelian Khachapuri", "Cheese bread topped with more cheese", 16.0,
             ["flour", "sulguni", "imeruli cheese"], ["gluten", "dairy"]),
        ],
        "khinkali": [
            ("Beef Khinkali", "Dumplings with spiced beef and broth", 1.5,
             ["flour", "beef", "onion", "cumin"], ["gluten"]),
            ("Pork Khinkali", "Dumplings with pork and herbs", 1.4,
             ["flour", "pork", "coriander"], ["gluten"]),
            ("Mushroom Khinkali", "Dumplings with mushrooms and onion", 1.3,
             ["flour", "mushroom", "onion"], ["gluten"]),
            ("Cheese Khinkali", "Dumplings filled with cheese", 1.3,
             ["flour", "sulguni"], ["gluten", "dairy"]),
        ],
        "salads": [
            ("Georgian Salad", "Tomatoes and cucumbers with walnut dressing", 9.0,
             ["tomato", "cucumber", "walnut", "onion"], ["nuts"]),
            ("Pkhali Assortment", "Spinach, beet and cabbage pastes with walnuts", 12.0,
             ["spinach", "beet", "walnut", "garlic"], ["nuts"]),
        ],
        "mains": [
            ("Mtsvadi", "Grilled pork skewers with onion", 15.0,
             ["pork", "onion", "pomegranate"], []),
            ("Chkmeruli", "Fried chicken in garlic cream sauce", 17.0,
             ["chicken", "garlic", "cream"], ["dairy"]),
            ("Ojakhuri", "Pan-fried pork with potatoes", 14.0,
             ["pork", "potato", "onion"], []),
            ("Lobio", "Red bean stew served in a clay pot", 8.0,
             ["kidney beans", "coriander", "garlic"], []),
        ],
        "desserts": [
            ("Churchkhela", "Walnuts dipped in thickened grape juice", 4.0,
             ["walnut", "grape juice", "flour"], ["nuts", "gluten"]),
            ("Pelamushi", "Grape pudding", 5.0,
             ["grape juice", "corn flour"], []),
        ],
        "drinks": [
            ("Saperavi", "Dry red wine, glass", 6.0, ["grapes"], ["sulfites"]),
            ("Tarkhuna Lemonade", "Tarragon lemonade", 3.0, ["tarragon", "sugar"], []),
            ("Borjomi", "Mineral water", 2.5, ["mineral water"], []),
        ],
    }

    def __init__(self, seed: int | None = None):
        if seed:
            random.seed(seed)
            Faker.seed(seed)
        self._next_dish_id = 1

    def generate_dish(self, restaurant_id: int, category: str | None = None) -> Dish:
        """Generate one dish for a restaurant."""
        category = category or random.choice(list(self.DISH_TEMPLATES))
        name, description, price, ingredients, allergens = random.choice(
            self.DISH_TEMPLATES[category]
        )

        dish = Dish(
            id=self._next_dish_id,
            restaurant_id=restaurant_id,
            name=name,
            description=description,
            price=round(price * random.uniform(0.9, 1.2), 2),
            image_url=f"https://images.example.com/dishes/{self._next_dish_id}.jpg",
            ingredients=list(ingredients),
            tags=[category],
            allergens=list(allergens),
        )
        self._next_dish_id += 1
        return dish

    def generate_restaurant(self, restaurant_id: int) -> Restaurant:
        """Generate a mock restaurant with a handful of dishes."""
        categories = random.sample(list(self.DISH_TEMPLATES), k=random.randint(2, 4))

        dishes: list[Dish] = []
        names: set[str] = set()
        for category in categories:
            for _ in range(random.randint(1, 3)):
                dish = self.generate_dish(restaurant_id, category)
                # Dish names are unique within a restaurant
                if dish.name in names:
                    continue
                names.add(dish.name)
                dishes.append(dish)

        return Restaurant(
            id=restaurant_id,
            name=f"{random.choice(self.NAME_PREFIXES)} {fake.last_name()}",
            address=fake.street_address(),
            latitude=float(fake.latitude()),
            longitude=float(fake.longitude()),
            working_hours=random.choice(self.HOURS),
            phone=fake.phone_number(),
            price_range=random.randint(1, 4),
            atmosphere=random.sample(self.ATMOSPHERES, k=random.randint(1, 3)),
            dishes=dishes,
        )

    def generate_catalog(self, count: int = 10) -> list[Restaurant]:
        """Generate a catalog of restaurants with consecutive ids."""
        return [self.generate_restaurant(i) for i in range(1, count + 1)]

    def write_catalog(self, path: str | Path, count: int = 10) -> Path:
        """Write a generated catalog as JSON readable by JsonCatalogProvider."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        catalog = [
            r.model_dump(mode="json", by_alias=True) for r in self.generate_catalog(count)
        ]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(catalog, f, ensure_ascii=False, indent=2)
        return path

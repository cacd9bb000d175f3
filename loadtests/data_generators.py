"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the Checkout API's Pydantic request
schemas. Product references are random ids unknown to the default in-memory
catalogue, so every line is decided by its cached ``stock_hint``.
"""

import random
import uuid

from faker import Faker

fake = Faker()


def shopper() -> dict:
    return {
        "user_id": str(uuid.uuid4()),
        "name": fake.name()[:255],
        "email": fake.email(),
    }


def cart_line(stock_hint: int = 0, resale: bool = False) -> dict:
    """A cart line whose cached stock decides where it lands."""
    product_id = str(uuid.uuid4())
    size = random.choice(["S", "M", "L", "XL"])
    color = fake.color_name()
    quantity = random.randint(1, 3)
    unit_price = float(random.randint(199, 4999))
    line = {
        "line_id": f"{product_id}-{size}-{color}",
        "raw_product_ref": product_id,
        "quantity": quantity,
        "unit_price": unit_price,
        "variant_hint": {"size": size, "color": color},
        "name": fake.catch_phrase()[:255],
        "sku": f"LT-{uuid.uuid4().hex[:8].upper()}",
        "stock_hint": stock_hint,
    }
    if resale:
        line["is_resale_flagged"] = True
        line["resale_price"] = round(unit_price * quantity * random.uniform(1.05, 1.4), 2)
    return line


def coupon() -> dict:
    if random.random() < 0.5:
        return {
            "code": f"LT{uuid.uuid4().hex[:8].upper()}",
            "discount_type": "percentage",
            "discount_value": random.choice([5, 10, 15, 20]),
        }
    return {
        "code": f"LT{uuid.uuid4().hex[:8].upper()}",
        "discount_type": "fixed",
        "discount_value": random.choice([50, 100, 250]),
        "min_order_value": 500,
    }

"""Checkout load test scenarios.

Two stateful SequentialTaskSet journeys: a shopper whose cart is entirely
out of stock and ends up with a backorder draft, and an admin/shopper pair
that registers a coupon and quotes it against a cart.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import cart_line, coupon, shopper
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShopperState


class BackorderJourney(SequentialTaskSet):
    """Fill Cart (out of stock) -> Checkout -> Read Draft -> Clear Cart."""

    def on_start(self):
        self.state = ShopperState(customer=shopper())

    @property
    def user_id(self):
        return self.state.customer["user_id"]

    @task
    def fill_cart(self):
        for _ in range(3):
            line = cart_line(stock_hint=0)
            with self.client.post(
                f"/carts/{self.user_id}/lines",
                json=line,
                catch_response=True,
                name="POST /carts/{user_id}/lines",
            ) as resp:
                if resp.status_code == 201:
                    self.state.line_ids.append(line["line_id"])
                else:
                    resp.failure(f"Add cart line failed: {resp.status_code} - {extract_error_detail(resp)}")
                    self.interrupt()

    @task
    def checkout(self):
        with self.client.post(
            "/checkouts",
            json={"customer": self.state.customer},
            catch_response=True,
            name="POST /checkouts",
        ) as resp:
            if resp.status_code == 201 and resp.json()["backorder"]:
                self.state.draft_id = resp.json()["backorder"]["draft_id"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def read_draft(self):
        with self.client.get(
            f"/backorders/{self.state.draft_id}",
            catch_response=True,
            name="GET /backorders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Read draft failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def clear_cart(self):
        self.client.delete(f"/carts/{self.user_id}", name="DELETE /carts/{user_id}")
        self.interrupt()


class CouponQuoteJourney(SequentialTaskSet):
    """Register Coupon -> Fill Cart -> Quote -> Deactivate -> Clear Cart."""

    def on_start(self):
        self.state = ShopperState(customer=shopper())

    @property
    def user_id(self):
        return self.state.customer["user_id"]

    @task
    def register_coupon(self):
        payload = coupon()
        with self.client.post("/coupons", json=payload, catch_response=True, name="POST /coupons") as resp:
            if resp.status_code == 201:
                self.state.coupon_code = payload["code"]
            else:
                resp.failure(f"Register coupon failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def fill_cart(self):
        self.client.post(
            f"/carts/{self.user_id}/lines",
            json=cart_line(stock_hint=10),
            name="POST /carts/{user_id}/lines",
        )

    @task
    def quote(self):
        with self.client.post(
            "/checkouts/coupons/quote",
            json={"user_id": self.user_id, "code": self.state.coupon_code},
            catch_response=True,
            name="POST /checkouts/coupons/quote",
        ) as resp:
            # A fixed coupon may legitimately reject a small cart
            if resp.status_code not in (200, 422):
                resp.failure(f"Quote failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def deactivate(self):
        self.client.put(f"/coupons/{self.state.coupon_code}/deactivate", name="PUT /coupons/{code}/deactivate")

    @task
    def clear_cart(self):
        self.client.delete(f"/carts/{self.user_id}", name="DELETE /carts/{user_id}")
        self.interrupt()


class CheckoutUser(HttpUser):
    """Mixed checkout traffic: mostly backorders, some coupon quoting."""

    wait_time = between(0.5, 2)
    tasks = {BackorderJourney: 3, CouponQuoteJourney: 1}

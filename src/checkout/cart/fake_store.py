"""In-memory cart store, keyed by user."""

from dataclasses import replace

from checkout.cart.port import CartLine, CartStore


class InMemoryCartStore(CartStore):
    def __init__(self) -> None:
        self._carts: dict[str, list[CartLine]] = {}
        self.removed: list[tuple[str, tuple[str, ...]]] = []

    def list(self, user_id: str) -> list[CartLine]:
        return list(self._carts.get(user_id, []))

    def add(self, user_id: str, line: CartLine) -> None:
        lines = self._carts.setdefault(user_id, [])
        for index, existing in enumerate(lines):
            if existing.line_id == line.line_id:
                lines[index] = replace(existing, quantity=existing.quantity + line.quantity)
                return
        lines.append(line)

    def remove(self, user_id: str, line_ids) -> None:
        line_ids = tuple(line_ids)
        doomed = set(line_ids)
        self.removed.append((user_id, line_ids))
        self._carts[user_id] = [line for line in self._carts.get(user_id, []) if line.line_id not in doomed]

    def clear(self, user_id: str) -> None:
        self._carts.pop(user_id, None)

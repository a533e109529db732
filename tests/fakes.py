"""Test doubles for the order service collaborators."""


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def send_order_placed(self, user_id, order_id, total_amount):
        self.sent.append((user_id, order_id, total_amount))


class FakeLockService:
    """In-memory stand-in for LockService with the same all-or-nothing semantics."""

    def __init__(self):
        self.held = {}
        self._n = 0

    def new_token(self):
        self._n += 1
        return f"token-{self._n}"

    def acquire_many(self, keys, token, ttl):
        keys = sorted(set(keys))
        if any(self.held.get(k, token) != token for k in keys):
            return False
        for k in keys:
            self.held[k] = token
        return True

    def release_many(self, keys, token):
        for k in keys:
            if self.held.get(k) == token:
                del self.held[k]

import secrets


class IdGenerator:
    """Random identifiers for actions and new license keys."""

    def action_id(self, created_at_ms: int) -> str:
        # Timestamp prefix keeps ids roughly sortable; the suffix makes collisions negligible
        return f"{created_at_ms}-{secrets.token_hex(4)}"

    def license_key(self) -> str:
        first, second = (secrets.token_hex(2).upper() for _ in range(2))
        return f"GG-{first}-{second}"

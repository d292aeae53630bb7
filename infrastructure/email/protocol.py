"""EmailProvider protocol - services depend on this, not the concrete implementation."""

from typing import Protocol


class EmailProvider(Protocol):
    async def send_otp(self, email: str, code: str, purpose: str) -> bool:
        """Deliver *code* to *email* using the template for *purpose*.

        Returns False (or raises) when delivery failed.
        """
        ...

    async def aclose(self) -> None: ...

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CaptchaVerdict:
    """Outcome reported by the verification service for one token."""

    success: bool
    error_codes: tuple[str, ...] = field(default_factory=tuple)
    score: float | None = None
    hostname: str | None = None


class AbstractCaptchaClient(ABC):
    """Interface for CAPTCHA siteverify backends (hCaptcha, Turnstile, ...)."""

    @abstractmethod
    async def siteverify(self, secret: str, token: str) -> CaptchaVerdict:
        """Ask the provider whether ``token`` is valid.

        Args:
            secret: Server-side secret key.
            token: Widget token submitted by the client.

        Returns:
            CaptchaVerdict: Parsed provider answer.

        Raises:
            CaptchaServiceError: If the provider cannot be reached or its
                answer cannot be parsed.
        """
        ...

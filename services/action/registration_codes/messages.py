"""User-facing message texts (Spanish, as shown in the community server)."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from resources.adapters.chat import TriggerEvent, TriggerKind

NO_DECLARED_EXPIRY = "Tiempo limitado"


class RegistrationMessages:
    """Renders every text the bot shows to a requesting user."""

    def __init__(
        self,
        *,
        text_command: str = "!codigo",
        slash_command: str = "codigo",
        game_command: str = "!registrarse",
        display_timezone: str = "UTC",
    ) -> None:
        self._text_command = text_command
        self._slash_command = slash_command
        self._game_command = game_command
        self._zone = ZoneInfo(display_timezone)

    def format_expiry(self, expires_at: datetime | None) -> str:
        if expires_at is None:
            return NO_DECLARED_EXPIRY
        return expires_at.astimezone(self._zone).strftime("%d/%m/%Y %H:%M:%S %Z")

    def code_dm(self, *, code: str, expires_at: datetime | None) -> str:
        return (
            "🔐 **Código de registro**\n"
            "────────────────────\n"
            f"**`{code}`**\n\n"
            "Usalo en HaxBall con:\n"
            f"`{self._game_command} {code}`\n\n"
            f"⏱ Válido hasta: {self.format_expiry(expires_at)}\n\n"
            "_Si no te llega este mensaje, asegurate de tener los mensajes privados abiertos._"
        )

    def cooldown_reply(self, trigger: TriggerEvent) -> str:
        return f"{trigger.user.mention} ⏳ Esperá un momento antes de volver a pedir un código."

    def rate_limited(self) -> str:
        return "Estás solicitando códigos muy rápido. Esperá un momento e intentá de nuevo."

    def generation_failed(self) -> str:
        return "❌ No se pudo generar el código en este momento. Probá nuevamente en unos segundos."

    def public_fallback(self, trigger: TriggerEvent, text: str) -> str:
        """Channel version of an informational DM that could not be sent."""
        return f"{trigger.user.mention}, no pude escribirte por privado. {text}"

    def dm_closed_notice(self, trigger: TriggerEvent) -> str:
        return (
            f"{trigger.user.mention}, te envié el código pero tenés los mensajes privados "
            f"cerrados. Abrilos y volvé a {self._retry_hint(trigger)}."
        )

    def confirmation(self, trigger: TriggerEvent) -> str:
        return f"📩 {trigger.user.mention}, te envié el código por mensaje privado."

    def _retry_hint(self, trigger: TriggerEvent) -> str:
        if trigger.kind is TriggerKind.INTERACTION:
            return f"usar `/{self._slash_command}`"
        return f"escribir `{self._text_command}`"

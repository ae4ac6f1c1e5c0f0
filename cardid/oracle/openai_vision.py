"""Vision oracle backed by an OpenAI chat completion with an image input."""

import base64
import json
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from ..core.types import CardGuess, VerifiedIdentity
from ..utils.config import settings
from ..utils.error_handler import ConfigurationError, OracleError
from ..utils.log import LoggerMixin
from .base import VisionOracle

CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

SYSTEM_PROMPT = """You identify trading cards from photos. Read the printed text, do not guess from art style.

Read in this order:
1. The card name as printed at the top.
2. The collector number, usually at the bottom ("25/102", "TG05", "OP01-001", "LOB-EN005"). Copy it exactly; a number above the set total ("198/165") is a special-art printing of the SAME set.
3. The set symbol or printed set code.
4. The rarity (symbol color, foil treatment or printed letters).

Games:
- pokemon: HP top right, weakness/resistance at the bottom.
- yugioh: ATK/DEF, level stars, colored frame by card type.
- onepiece: DON!! cost, power and counter values.
- mtg: mana cost top right, type line under the art, power/toughness box.

Set code formats:
- pokemon: TCGdex ids such as "base1", "swsh12", "sv01", sub-sets with a decimal ("sv03.5" is Pokemon 151).
- yugioh: the prefix of the printing code ("LOB", "MRD", "ROTD").
- onepiece: "OP01", "ST10", "EB01", "PRB01".
- mtg: lowercase Scryfall codes ("lea", "dmu", "woe").
When unsure of the code give your best guess in setId and the full expansion name in setName.

Language is "ja" when the card text is Japanese, otherwise "en".

Answer with ONLY this JSON object:
{"game": "pokemon|yugioh|onepiece|mtg", "name": "...", "setName": "...", "setId": "...", "cardNumber": "...", "rarity": "...", "estimatedValue": 0.0, "language": "en|ja"}
If the image is not a readable card answer {"error": "Could not identify card"}."""

IDENTIFY_PROMPT = "Identify this trading card. Read the exact collector number, including any letter prefix."

CORRECTION_PROMPT = (
    "Your previous answer was name \"{name}\", card number \"{number}\", set \"{set_id}\"{set_name}. "
    "No catalog card matches it. Look at the card again and re-read the name, the collector number "
    "and the set symbol character by character. Answer with the same JSON format."
)


def image_data_url(image: bytes) -> str:
    if image.startswith(b"\x89PNG"):
        mime = "image/png"
    elif image[:4] == b"RIFF" and image[8:12] == b"WEBP":
        mime = "image/webp"
    else:
        mime = "image/jpeg"
    return f"data:{mime};base64,{base64.b64encode(image).decode('ascii')}"


def parse_guess(raw: Optional[str]) -> CardGuess:
    """Parse a model reply into a CardGuess, tolerating code fences and chatter around the JSON."""
    text = CODE_FENCE_PATTERN.sub("", raw or "").strip()
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise OracleError("Vision model returned no JSON object", details={"raw": (raw or "")[:500]})
    try:
        payload = json.loads(text[start:end + 1])
    except ValueError as e:
        raise OracleError("Vision model returned malformed JSON", details={"raw": (raw or "")[:500]}) from e
    return CardGuess.from_payload(payload)


class OpenAIVisionOracle(VisionOracle, LoggerMixin):
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model or settings.OPENAI_MODEL
        if client is None:
            api_key = api_key or settings.OPENAI_API_KEY
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY is required for the vision oracle")
            client = AsyncOpenAI(api_key=api_key, base_url=base_url or settings.OPENAI_BASE_URL)
        self.client = client

    def _image_message(self, image: bytes, text: str) -> Dict[str, Any]:
        return {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": image_data_url(image), "detail": "high"}},
                {"type": "text", "text": text},
            ],
        }

    async def _complete(self, messages: List[Dict[str, Any]]) -> CardGuess:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                temperature=0.0,
                max_tokens=1024,
                messages=messages,
            )
        except OpenAIError as e:
            raise OracleError("Vision model request failed", details={"model": self.model, "error": str(e)}) from e

        raw = (response.choices[0].message.content or "").strip() if response.choices else ""
        guess = parse_guess(raw)
        self.logger.info(
            "Vision guess",
            game=guess.game.value,
            name=guess.name,
            set_id=guess.set_id,
            set_name=guess.set_name,
            card_number=guess.card_number,
            rarity=guess.rarity,
            language=guess.language.value,
        )
        return guess

    async def identify(self, image: bytes) -> CardGuess:
        return await self._complete([
            {"role": "system", "content": SYSTEM_PROMPT},
            self._image_message(image, IDENTIFY_PROMPT),
        ])

    async def reidentify(self, image: bytes, previous: CardGuess, identity: VerifiedIdentity) -> CardGuess:
        correction = CORRECTION_PROMPT.format(
            name=previous.name,
            number=previous.card_number,
            set_id=identity.set_code or previous.set_id,
            set_name=f" ({previous.set_name})" if previous.set_name else "",
        )
        return await self._complete([
            {"role": "system", "content": SYSTEM_PROMPT},
            self._image_message(image, IDENTIFY_PROMPT),
            {"role": "assistant", "content": json.dumps(_payload(previous))},
            {"role": "user", "content": correction},
        ])


def _payload(guess: CardGuess) -> Dict[str, Any]:
    return {
        "game": guess.game.value,
        "name": guess.name,
        "setName": guess.set_name,
        "setId": guess.set_id,
        "cardNumber": guess.card_number,
        "rarity": guess.rarity,
        "estimatedValue": guess.estimated_value,
        "language": guess.language.value,
    }

"""
Prompt templates and generation settings shared by all backends.

The persona preamble and extraction instructions are prepended here so that
every backend sends the same instructions for the same operation.
"""

from typing import List, Optional, Union

from .core.config import GatewayConfig
from .core.interface import ExtractMode, ImageStyle
from .models.request import (
    Content,
    GenerateContentRequest,
    GenerationConfig,
    InlineData,
    Part,
    SafetySetting,
)

HARM_CATEGORIES = (
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_HARASSMENT",
)
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"

SAFETY_SETTINGS: List[SafetySetting] = [
    SafetySetting(category=category, threshold=SAFETY_THRESHOLD)
    for category in HARM_CATEGORIES
]

TEXT_GENERATION = GenerationConfig(temperature=0.8, top_k=64, top_p=0.95, max_output_tokens=2048)

# Low temperature keeps transcription faithful
EXTRACT_GENERATION = GenerationConfig(temperature=0.4, top_k=32, top_p=0.8, max_output_tokens=2048)

_PERSONA = """You are "{name}", the AI assistant built into the {name} chat bot.

Follow these guidelines when answering:
- Be kind and knowledgeable, and answer as {name}
- Answer politely in {language}
- Keep the answer under {limit} characters so it fits in a chat message
- Use emoji sparingly to keep the tone friendly
- Refer to yourself as "{name}" or "I"
- Never mention the name of the underlying model"""

_ASK = """{persona}

User ID: {user_id}
User question: {question}"""

_IMAGE_QUESTION = """{persona}

Analyze the attached image and answer the following question with a
detailed description of what you see.

Question: {question}"""

_EXTRACT_INSTRUCTIONS = {
    ExtractMode.TEXT: """Extract every piece of text contained in this image exactly.
- Read each character accurately
- Reproduce line breaks and layout as closely as possible
- Mark illegible parts as [illegible]
- Handle any language present in the image

Extracted text:""",
    ExtractMode.TRANSLATE: """Extract the text contained in this image and translate it into {language}.
- First extract the original text accurately
- Then translate it naturally into {language}
- If the text is already in {language}, return the extraction as is
- Translate technical terms appropriately

Output both the original text and the translation.""",
    ExtractMode.SUMMARIZE: """Extract the text contained in this image and summarize it.
- Read the full text first
- Summarize the key points in 3 to 5 bullet points
- Write concisely in {language}
- State what kind of document it is (mail, article, report, ...)

Summary:""",
    ExtractMode.ANALYZE: """Analyze the text and content of this image in detail, covering:
- The type and purpose of the document
- The main points of its content
- Anything important or worth noting
- Its structure and format
- Any other observations

Detailed analysis:""",
}

_EXTRACT_FALLBACK = "Extract the text contained in this image and present it in a readable form."

_EXTRACT = """You are "{name}", the OCR and image analysis feature of the {name} chat bot.

{instruction}

User ID: {user_id}"""

_STYLE_MODIFIERS = {
    ImageStyle.ARTISTIC: "artistic style, masterpiece",
    ImageStyle.PHOTOREALISTIC: "photorealistic, high quality photo, 8k resolution",
    ImageStyle.ANIME: "anime style, manga art, japanese animation",
    ImageStyle.GAME: "game art, concept art, digital painting",
    ImageStyle.SKETCH: "pencil sketch, hand drawn, black and white",
}

_IMAGE = """Generate a stunning, ultra-high-quality image based on this description: {prompt}
Style: Digital art, highly detailed, vibrant colors, professional quality, 8K resolution
Enhanced: photorealistic details, perfect composition, cinematic lighting"""


def persona(config: GatewayConfig) -> str:
    return _PERSONA.format(
        name=config.persona_name,
        language=config.response_language,
        limit=config.max_answer_chars,
    )


def ask_prompt(config: GatewayConfig, question: str, user_id: str) -> str:
    """Question wrapped in the persona preamble."""
    return _ASK.format(persona=persona(config), user_id=user_id, question=question)


def image_question_prompt(config: GatewayConfig, question: str) -> str:
    return _IMAGE_QUESTION.format(persona=persona(config), question=question)


def extract_prompt(
    config: GatewayConfig,
    mode: Union[ExtractMode, str, None],
    user_id: str,
) -> str:
    """
    Instruction for an extraction mode.

    Unknown modes get a generic "read the text" instruction.
    """
    parsed = ExtractMode.parse(mode)
    if parsed is None:
        instruction = _EXTRACT_FALLBACK
    else:
        instruction = _EXTRACT_INSTRUCTIONS[parsed].format(language=config.response_language)
    return _EXTRACT.format(name=config.persona_name, instruction=instruction, user_id=user_id)


def image_prompt(prompt: str, style: Optional[Union[ImageStyle, str]] = None) -> str:
    """Image description with style and quality modifiers appended."""
    if style:
        try:
            prompt = f"{prompt}, {_STYLE_MODIFIERS[ImageStyle(style)]}"
        except ValueError:
            pass
    return _IMAGE.format(prompt=prompt)


def text_request(prompt: str) -> GenerateContentRequest:
    """Single-turn text request body."""
    return GenerateContentRequest(
        contents=[Content(role="user", parts=[Part(text=prompt)])],
        generation_config=TEXT_GENERATION,
        safety_settings=SAFETY_SETTINGS,
    )


def image_request(
    prompt: str,
    image: bytes,
    mime_type: str,
    generation: GenerationConfig = EXTRACT_GENERATION,
) -> GenerateContentRequest:
    """Instruction and inline image sent together in one turn."""
    return GenerateContentRequest(
        contents=[Content(role="user", parts=[
            Part(text=prompt),
            Part(inline_data=InlineData.from_bytes(image, mime_type)),
        ])],
        generation_config=generation,
        safety_settings=SAFETY_SETTINGS,
    )

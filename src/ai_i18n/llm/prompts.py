"""
Prompt builders for extraction and translation calls.

The prompts ask the model for a single JSON object, optionally wrapped in a
fenced code block:

    extraction:  {"extractedTexts": {"__I18N_1__": "提交"},
                  "transformedCode": "<code using $t('__I18N_1__')>"}
    translation: {"translations": {"ti_jiao": "Submit"}}

The field names are the contract checked by the CallClient; the wording of
the instructions is free to change.

Author: ai-i18n contributors
License: MIT
"""

import json
from typing import Dict

# Fields every extraction response must contain.
EXTRACTION_FIELDS = ("extractedTexts", "transformedCode")

# Fields every translation response must contain.
TRANSLATION_FIELDS = ("translations",)

# Placeholder format the model is asked to use; numbered from 1 per file.
PLACEHOLDER_FORMAT = "__I18N_{index}__"

# Framework hints by file category.
FRAMEWORK_HINTS = {
    ".tsx": "a React component written in TypeScript (TSX)",
    ".jsx": "a React component written in JavaScript (JSX)",
    ".ts": "a TypeScript module",
    ".js": "a JavaScript module",
    ".vue": "a Vue single-file component (template, script and style blocks)",
}


def build_extraction_prompt(
    content: str,
    relative_path: str,
    category: str,
    locale: str,
    function_name: str,
) -> str:
    """
    Build the prompt that extracts localizable texts from one source file.

    Args:
        content: Full source of the file.
        relative_path: Path shown to the model for context.
        category: File extension, used to pick a framework hint.
        locale: Locale of the texts to extract (e.g. "zh-CN").
        function_name: Translation function to call in rewritten code.

    Returns:
        str: The complete prompt.
    """
    hint = FRAMEWORK_HINTS.get(category, "a source file")
    placeholder = PLACEHOLDER_FORMAT.format(index=1)
    return (
        f"You are localizing {hint}: {relative_path}\n\n"
        f"Find every user-visible text written in {locale}. Replace each one "
        f"with a call to {function_name}() whose single argument is a string "
        f"placeholder such as '{placeholder}', numbered from 1. Do not touch "
        f"comments, console output, import paths or identifiers, and keep the "
        f"rest of the code byte-for-byte identical.\n\n"
        f"Answer with one JSON object and nothing else:\n"
        f'{{"extractedTexts": {{"{placeholder}": "<original text>"}}, '
        f'"transformedCode": "<the full rewritten file>"}}\n'
        f"If the file contains no such text, return an empty extractedTexts "
        f"object and the file unchanged.\n\n"
        f"```{category.lstrip('.') or 'text'}\n{content}\n```"
    )


def build_translation_prompt(
    texts: Dict[str, str],
    source_locale: str,
    target_locale: str,
) -> str:
    """
    Build the prompt that translates one batch of locale entries.

    Args:
        texts: Mapping of key to source text.
        source_locale: Locale of the texts.
        target_locale: Locale to translate into.

    Returns:
        str: The complete prompt.
    """
    payload = json.dumps(texts, ensure_ascii=False, indent=2)
    return (
        f"Translate the values of this JSON object from {source_locale} to "
        f"{target_locale} for a software user interface. Keep every key "
        f"unchanged, keep interpolation markers such as {{name}} or {{{{count}}}} "
        f"as they are, and keep translations short.\n\n"
        f'Answer with one JSON object and nothing else: {{"translations": '
        f'{{"<key>": "<translated text>"}}}}\n\n'
        f"```json\n{payload}\n```"
    )

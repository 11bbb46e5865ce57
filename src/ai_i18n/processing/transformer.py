"""
Placeholder-to-key rewriting of extracted content.

The extraction call returns content in which every localizable text is
replaced by a placeholder key scoped to one file. The TransformStage asks
the KeyGenerator for a final key per placeholder, substitutes the keys into
the content and hands the result to the syntax validator.

Author: ai-i18n contributors
License: MIT
"""

from typing import Dict, Optional

from ..core.models import ExtractionRecord, TransformOutput, ValidationReport
from ..core.string_utils import replace_whole_tokens
from .key_generator import KeyGenerator
from .validator import SyntaxValidator


class TransformStage:
    """
    Resolves placeholder keys and rewrites content.

    Args:
        key_generator: Generator shared by every unit of the run.
        validator: Syntax validator; a SyntaxValidator by default.

    Example:
        >>> stage = TransformStage(KeyGenerator(max_length=10))
        >>> record = ExtractionRecord({"__P1__": "提交"}, 'call("__P1__")')
        >>> stage.apply(record, stage.resolve_keys(record)).content
        'call("ti_jiao")'
    """

    def __init__(self, key_generator: KeyGenerator, validator: Optional[SyntaxValidator] = None) -> None:
        self.key_generator = key_generator
        self.validator = validator or SyntaxValidator()

    def resolve_keys(self, record: ExtractionRecord) -> Dict[str, str]:
        """Return the placeholder -> final key mapping of a record."""
        return {
            placeholder: self.key_generator.generate_key(text)
            for placeholder, text in record.placeholder_text.items()
        }

    def apply(self, record: ExtractionRecord, mapping: Dict[str, str]) -> TransformOutput:
        """
        Substitute final keys for placeholders in the record's content.

        Only whole tokens are replaced, so "__P1__" never matches inside
        "__P10__", and replaced text is never substituted again.

        Returns:
            TransformOutput: Rewritten content and its final key -> text pairs.
        """
        content = replace_whole_tokens(record.transformed_content, mapping)
        pairs = {
            mapping[placeholder]: text
            for placeholder, text in record.placeholder_text.items()
            if placeholder in mapping
        }
        return TransformOutput(content=content, pairs=pairs)

    def validate(self, content: str, category: str) -> ValidationReport:
        """Return the validator's verdict on rewritten content, unchanged."""
        return self.validator.validate(content, category)

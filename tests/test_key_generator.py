"""
Tests for locale key generation.
"""

from concurrent.futures import ThreadPoolExecutor

from ai_i18n.config.schema import KeyGenerationConfig, PinyinOptions
from ai_i18n.core.string_utils import md5_hex, to_base36
from ai_i18n.processing.key_generator import KeyGenerator


class TestRomanization:
    """Tests for turning texts into keys."""

    def test_chinese_text_becomes_pinyin(self):
        """Test Chinese characters are transliterated and joined."""
        assert KeyGenerator().generate_key("提交") == "ti_jiao"

    def test_mixed_text(self):
        """Test ASCII words are lower-cased next to pinyin."""
        assert KeyGenerator().generate_key("OK 提交") == "ok_ti_jiao"

    def test_long_text_truncated_with_hash(self):
        """Test a romanization over max_length is cut and suffixed with the text hash."""
        generator = KeyGenerator(max_length=5, hash_length=6)
        text = "提交按钮"

        key = generator.generate_key(text)

        assert key == "ti_ji_" + md5_hex(text, 6)

    def test_distinct_long_texts_differ(self):
        """Test two long texts sharing a prefix get different keys."""
        generator = KeyGenerator(max_length=5)
        assert generator.generate_key("提交按钮") != generator.generate_key("提交表单")

    def test_key_prefix(self):
        """Test the prefix is prepended with the separator."""
        generator = KeyGenerator(key_prefix="app")
        key = generator.generate_key("提交")
        assert key == "app_ti_jiao"
        assert generator.validate_key(key)

    def test_tone_numbers(self):
        """Test numeric tone marks."""
        assert KeyGenerator(tone_type="num").generate_key("提交") == "ti2_jiao1"

    def test_string_join_mode(self):
        """Test tokens are concatenated in string join mode."""
        assert KeyGenerator(join_mode="string").generate_key("提交") == "tijiao"

    def test_symbols_only_fall_back_to_code_points(self):
        """Test a text without words is encoded character by character."""
        generator = KeyGenerator()
        text = "！！"

        key = generator.generate_key(text)

        assert key == to_base36(ord("！")) * 2
        assert generator.validate_key(key)
        assert generator.stats()["fallbacks"] == 1

    def test_whitespace_falls_back_to_hash(self):
        """Test a blank text still gets a valid key."""
        generator = KeyGenerator()
        key = generator.generate_key("   ")
        assert key == md5_hex("   ", 8)
        assert generator.validate_key(key)

    def test_empty_text(self):
        """Test the empty string gets a valid key."""
        generator = KeyGenerator()
        assert generator.validate_key(generator.generate_key(""))

    def test_emoji_text_is_valid(self):
        """Test characters outside every script are encoded."""
        generator = KeyGenerator()
        assert generator.validate_key(generator.generate_key("完成 🎉"))


class TestReuse:
    """Tests for identical texts and collisions."""

    def test_reuse_returns_same_key(self):
        """Test the same text gets the same key when reuse is enabled."""
        generator = KeyGenerator(reuse_existing_key=True)
        first = generator.generate_key("提交")
        second = generator.generate_key("提交")

        assert first == second
        assert generator.stats()["reused"] == 1

    def test_no_reuse_returns_distinct_keys(self):
        """Test repeated texts get distinct valid keys when reuse is disabled."""
        generator = KeyGenerator(reuse_existing_key=False)
        keys = [generator.generate_key("提交") for _ in range(5)]

        assert len(set(keys)) == 5
        assert keys[0] == "ti_jiao"
        assert all(key.startswith("ti_jiao") for key in keys)
        assert all(generator.validate_key(key) for key in keys)

    def test_collision_with_existing_key(self):
        """Test a key already in use is disambiguated with the text hash."""
        generator = KeyGenerator(reuse_existing_key=True, hash_length=6)
        generator.load_existing_keys(["ti_jiao"])

        key = generator.generate_key("提交")

        assert key == "ti_jiao_" + md5_hex("提交", 6)
        assert generator.stats()["collisions"] == 1

    def test_different_texts_same_romanization(self):
        """Test homophones get different keys."""
        generator = KeyGenerator(reuse_existing_key=True)
        first = generator.generate_key("提交")
        second = generator.generate_key("Ti Jiao")

        assert first == "ti_jiao"
        assert second != first

    def test_existing_mapping_is_reused(self):
        """Test texts from a previous run keep their keys."""
        generator = KeyGenerator(reuse_existing_key=True)
        generator.load_existing_mapping({"submit_btn": "提交"})

        assert generator.generate_key("提交") == "submit_btn"

    def test_concurrent_generation_keeps_keys_unique(self):
        """Test keys stay unique when generated from many threads."""
        generator = KeyGenerator(reuse_existing_key=False)

        with ThreadPoolExecutor(max_workers=8) as executor:
            keys = list(executor.map(generator.generate_key, ["提交"] * 200))

        assert len(set(keys)) == 200


class TestState:
    """Tests for validation, configuration and state management."""

    def test_validate_key(self):
        """Test key validation."""
        generator = KeyGenerator()
        assert generator.validate_key("ti_jiao")
        assert generator.validate_key("page.title-1")
        assert not generator.validate_key("")
        assert not generator.validate_key("提交")
        assert not generator.validate_key("has space")

    def test_validate_key_requires_prefix(self):
        """Test keys without the configured prefix are rejected."""
        assert not KeyGenerator(key_prefix="app").validate_key("ti_jiao")

    def test_from_config(self):
        """Test generator settings come from the config section."""
        config = KeyGenerationConfig(
            max_length=20,
            key_prefix="ui",
            pinyin=PinyinOptions(tone_type="num", join_mode="string"),
        )
        generator = KeyGenerator.from_config(config)

        assert generator.generate_key("提交") == "ui_ti2jiao1"

    def test_stats_and_clear(self):
        """Test counters and reset."""
        generator = KeyGenerator()
        generator.generate_keys(["提交", "取消"])

        stats = generator.stats()
        assert stats["total_keys"] == 2
        assert stats["generated"] == 2
        assert generator.all_keys() == ["qu_xiao", "ti_jiao"]
        assert generator.text_to_key_map() == {"提交": "ti_jiao", "取消": "qu_xiao"}

        generator.clear()

        assert generator.stats()["total_keys"] == 0
        assert generator.all_keys() == []

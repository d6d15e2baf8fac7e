import unittest

from quizrelay.utils.payload_utils import (
    clean_text,
    extract_payload,
    find_answer_object,
    find_payload_object,
    looks_like_payload_block,
)


class TestExtractPayload(unittest.TestCase):
    def test_fenced_block_inside_prose(self):
        text = (
            "Here is my answer:\n"
            "```json\n"
            '{"answer": "4", "explanation": "Basic arithmetic."}\n'
            "```\n"
            "Let me know if you need anything else."
        )
        payload = extract_payload(text)
        self.assertIsNotNone(payload)
        self.assertEqual(payload.answer, "4")
        self.assertEqual(payload.explanation, "Basic arithmetic.")
        self.assertEqual(payload.raw, '{"answer": "4", "explanation": "Basic arithmetic."}')

    def test_fenced_block_without_language_tag(self):
        payload = extract_payload('```\n{"answer": ["a", "b"], "explanation": "Two blanks."}\n```')
        self.assertEqual(payload.answer, ["a", "b"])

    def test_object_in_prose_without_fence(self):
        text = 'Sure. {"answer": "Paris", "explanation": "Capital of France."} Hope that helps!'
        payload = extract_payload(text)
        self.assertEqual(payload.answer, "Paris")
        self.assertEqual(payload.raw, '{"answer": "Paris", "explanation": "Capital of France."}')

    def test_whole_text_is_json(self):
        payload = extract_payload('{"answer": true}')
        self.assertIs(payload.answer, True)
        self.assertEqual(payload.explanation, "")

    def test_nested_object_after_keys_is_kept_whole(self):
        text = 'x {"answer": "A", "explanation": "e", "meta": {"confidence": 0.9}} y'
        payload = extract_payload(text)
        self.assertIsNotNone(payload)
        self.assertEqual(payload.answer, "A")
        self.assertTrue(payload.raw.endswith("}}"))

    def test_braces_in_prose_before_the_object(self):
        text = 'A = {1, 2} and B = {3}. {"answer": "{1, 2, 3}", "explanation": "Union of both sets."}'
        payload = extract_payload(text)
        self.assertIsNotNone(payload)
        self.assertEqual(payload.answer, "{1, 2, 3}")
        self.assertEqual(payload.raw, '{"answer": "{1, 2, 3}", "explanation": "Union of both sets."}')

    def test_zero_width_characters_are_stripped(self):
        text = '\ufeff\u200b{"answer": "3", "explanation": "Count."}\u200d'
        payload = extract_payload(text)
        self.assertEqual(payload.answer, "3")

    def test_null_answer_is_rejected(self):
        self.assertIsNone(extract_payload('{"answer": null, "explanation": "none"}'))

    def test_missing_answer_is_rejected(self):
        self.assertIsNone(extract_payload('{"explanation": "only this"}'))

    def test_falsy_but_present_answer_is_accepted(self):
        payload = extract_payload('{"answer": 0, "explanation": "Zero."}')
        self.assertIsNotNone(payload)
        self.assertEqual(payload.answer, 0)

    def test_non_string_explanation_is_stringified(self):
        payload = extract_payload('{"answer": "B", "explanation": 42}')
        self.assertEqual(payload.explanation, "42")

    def test_malformed_and_partial_text_returns_none(self):
        samples = [
            "",
            "   ",
            "Thinking...",
            '{"answer": "4", "explan',
            '```json\n{"answer": "4",',
            '{"answer": "4" "explanation": "x"}',
            "[1, 2, 3]",
            '"just a string"',
            "{" * 500,
            "```json\nnot json at all\n```",
        ]
        for sample in samples:
            with self.subTest(sample=sample[:30]):
                self.assertIsNone(extract_payload(sample))

    def test_non_string_input_returns_none(self):
        self.assertIsNone(extract_payload(None))
        self.assertIsNone(extract_payload(123))

    def test_same_text_gives_same_result(self):
        text = 'prefix {"answer": "X", "explanation": "Y"} suffix'
        self.assertEqual(extract_payload(text), extract_payload(text))


class TestObjectSearch(unittest.TestCase):
    def test_find_answer_object_needs_only_answer(self):
        self.assertEqual(find_answer_object('foo {"answer": "1"} bar'), '{"answer": "1"}')
        self.assertIsNone(find_answer_object("no braces here"))

    def test_find_payload_object_needs_both_keys(self):
        self.assertIsNone(find_payload_object('{"answer": "1"}'))
        self.assertEqual(
            find_payload_object('ok {"answer": \'1\', "explanation": "e"} done'),
            '{"answer": \'1\', "explanation": "e"}',
        )

    def test_search_skips_stray_braces(self):
        self.assertEqual(find_answer_object('f(x) = {x} so {"answer": "x"}'), '{"answer": "x"}')
        self.assertEqual(
            find_payload_object("Let S = {a}. {\"answer\": 'a', \"explanation\": \"only member\"}"),
            "{\"answer\": 'a', \"explanation\": \"only member\"}",
        )
        self.assertIsNone(find_payload_object('{a} then "answer" and "explanation"}'))

    def test_braces_inside_strings_do_not_end_the_object(self):
        text = '{"answer": "f(x) = {x}", "explanation": "set}"}'
        self.assertEqual(find_payload_object(text), text)

    def test_looks_like_payload_block(self):
        self.assertTrue(looks_like_payload_block('{"answer": 1}'))
        self.assertFalse(looks_like_payload_block("answer: 1"))
        self.assertFalse(looks_like_payload_block(""))

    def test_clean_text(self):
        self.assertEqual(clean_text("  \u200ba\u200cb\ufeff  "), "ab")
        self.assertEqual(clean_text(None), "")


if __name__ == "__main__":
    unittest.main()

import json
import unittest
from datetime import date
from unittest.mock import Mock

from weekly_report.grouping.task_model import KIND_PROBLEM, KIND_TASK, NO_RELATED_ID, UNCATEGORIZED
from weekly_report.llm.commit_classifier import (
    BATCH_MAX_TOKENS,
    BATCH_TEMPERATURE,
    COMMIT_MAX_TOKENS,
    COMMIT_TEMPERATURE,
    CommitClassifier,
    fallback_candidate,
    parse_task_candidates,
    strip_code_fences,
)
from weekly_report.llm.ollama_client import LLMError
from weekly_report.vcs.git_client import CommitRecord


def make_commits(count=3, project="app"):
    return [
        CommitRecord(
            hash=f"{i:08x}",
            author="Ada",
            date=date(2024, 1, i),
            message=f"change number {i}",
            project=project,
            files=(f"M\tsrc/file{i}.py",),
        )
        for i in range(1, count + 1)
    ]


class TestStripCodeFences(unittest.TestCase):
    def test_plain_text_untouched(self):
        self.assertEqual(strip_code_fences('[{"a": 1}]'), '[{"a": 1}]')

    def test_json_fence(self):
        self.assertEqual(strip_code_fences('```json\n[{"a": 1}]\n```'), '[{"a": 1}]')

    def test_bare_fence_with_prose(self):
        text = 'Here you go:\n```\n[1, 2]\n```\nHope this helps.'
        self.assertEqual(strip_code_fences(text), "[1, 2]")

    def test_unterminated_fence(self):
        self.assertEqual(strip_code_fences("```json\n[1]"), "[1]")

    def test_backticks_inside_payload_are_kept(self):
        raw = '[{"module": "docs", "description": "document ```code``` blocks"}]'
        self.assertEqual(strip_code_fences(raw), raw)

    def test_fence_with_trailing_whitespace(self):
        self.assertEqual(strip_code_fences("  ```json\n[1]\n```  \n"), "[1]")


class TestParseTaskCandidates(unittest.TestCase):
    def test_parses_entries(self):
        raw = json.dumps(
            [
                {
                    "module": "auth",
                    "category": "new feature",
                    "description": "Add login",
                    "key_changes": ["form", "session"],
                    "commit_indices": [1, 2],
                }
            ]
        )
        candidates = parse_task_candidates(raw)
        self.assertEqual(len(candidates), 1)
        self.assertEqual(candidates[0].module, "auth")
        self.assertEqual(candidates[0].key_changes, ["form", "session"])
        self.assertEqual(candidates[0].commit_indices, [1, 2])

    def test_accepts_wrapped_tasks(self):
        raw = '{"tasks": [{"module": "db", "description": "Tune queries"}]}'
        self.assertEqual(parse_task_candidates(raw)[0].module, "db")

    def test_fills_missing_fields(self):
        candidate = parse_task_candidates('[{"description": "Tidy up"}]')[0]
        self.assertEqual(candidate.module, UNCATEGORIZED)
        self.assertEqual(candidate.category, UNCATEGORIZED)
        self.assertEqual(candidate.key_changes, [])
        self.assertIsNone(candidate.commit_indices)

    def test_coerces_indices(self):
        raw = '[{"module": "m", "commit_indices": ["2", 3.0, "x", true, 4]}]'
        self.assertEqual(parse_task_candidates(raw)[0].commit_indices, [2, 3, 4])

    def test_unconvertible_index_strings_are_dropped(self):
        raw = (
            '[{"module": "a", "commit_indices": [1]}, '
            '{"module": "b", "commit_indices": ["\u00b2", "--1", " 3 "]}]'
        )
        candidates = parse_task_candidates(raw)
        self.assertEqual([c.commit_indices for c in candidates], [[1], [3]])

    def test_scalar_index_and_key_change(self):
        raw = '[{"module": "m", "commit_indices": 2, "key_changes": "one change"}]'
        candidate = parse_task_candidates(raw)[0]
        self.assertEqual(candidate.commit_indices, [2])
        self.assertEqual(candidate.key_changes, ["one change"])

    def test_skips_unusable_items(self):
        raw = '[42, {"category": "bug fix"}, {"module": "api"}]'
        candidates = parse_task_candidates(raw)
        self.assertEqual([c.module for c in candidates], ["api"])
        self.assertEqual(candidates[0].description, "api")

    def test_rejects_non_array(self):
        with self.assertRaises(ValueError):
            parse_task_candidates('{"module": "api"}')

    def test_rejects_empty_array(self):
        with self.assertRaises(ValueError):
            parse_task_candidates("[]")

    def test_rejects_invalid_json(self):
        with self.assertRaises(ValueError):
            parse_task_candidates("not json at all")


class TestFallbackCandidate(unittest.TestCase):
    def test_spans_all_commits(self):
        commits = make_commits(5)
        candidate = fallback_candidate("app", commits)
        self.assertEqual(candidate.module, UNCATEGORIZED)
        self.assertEqual(candidate.commit_indices, [1, 2, 3, 4, 5])
        self.assertEqual(candidate.key_changes, [c.message for c in commits[:3]])
        self.assertIn("5 commits", candidate.description)

    def test_single_commit_wording(self):
        candidate = fallback_candidate("app", make_commits(1))
        self.assertIn("1 commit)", candidate.description)


class TestClassifyProject(unittest.TestCase):
    def test_success(self):
        llm = Mock()
        llm.generate.return_value = (
            '```json\n[{"module": "auth", "category": "new feature", '
            '"description": "Login", "commit_indices": [1, 2]}, '
            '{"module": "docs", "category": "documentation", '
            '"description": "Readme", "commit_indices": [3]}]\n```'
        )
        result = CommitClassifier(llm).classify_project("app", make_commits())

        self.assertTrue(result.ok)
        self.assertEqual([c.module for c in result.candidates], ["auth", "docs"])
        _, kwargs = llm.generate.call_args
        self.assertEqual(kwargs["temperature"], BATCH_TEMPERATURE)
        self.assertEqual(kwargs["max_tokens"], BATCH_MAX_TOKENS)

    def test_backticks_in_description_do_not_trigger_fallback(self):
        llm = Mock()
        llm.generate.return_value = (
            '[{"module": "docs", "description": "document ```code``` blocks", "commit_indices": [1]}]'
        )
        result = CommitClassifier(llm).classify_project("app", make_commits(1))
        self.assertTrue(result.ok)
        self.assertEqual(result.candidates[0].description, "document ```code``` blocks")

    def test_bad_index_in_one_entry_keeps_the_others(self):
        llm = Mock()
        llm.generate.return_value = (
            '[{"module": "a", "description": "x", "commit_indices": [1]}, '
            '{"module": "b", "description": "y", "commit_indices": ["²"]}]'
        )
        result = CommitClassifier(llm).classify_project("app", make_commits(2))
        self.assertTrue(result.ok)
        self.assertEqual([c.module for c in result.candidates], ["a", "b"])
        self.assertEqual(result.candidates[1].commit_indices, [])

    def test_malformed_response_falls_back(self):
        llm = Mock()
        llm.generate.return_value = "Sorry, I cannot help with that."
        commits = make_commits(4)
        with self.assertLogs("weekly_report.llm.commit_classifier", level="WARNING"):
            result = CommitClassifier(llm).classify_project("app", commits)

        self.assertTrue(result.fallback)
        self.assertFalse(result.ok)
        self.assertIsNotNone(result.error)
        self.assertEqual(len(result.candidates), 1)
        self.assertEqual(result.candidates[0].commit_indices, [1, 2, 3, 4])

    def test_service_error_falls_back(self):
        llm = Mock()
        llm.generate.side_effect = LLMError("connection refused")
        with self.assertLogs("weekly_report.llm.commit_classifier", level="WARNING"):
            result = CommitClassifier(llm).classify_project("app", make_commits(2))
        self.assertTrue(result.fallback)
        self.assertEqual(result.error, "connection refused")

    def test_prompt_lists_commits(self):
        commits = make_commits(2)
        prompt = CommitClassifier(Mock())._build_project_prompt("app", commits)
        self.assertIn("Project: app", prompt)
        self.assertIn("1. [2024-01-01] change number 1", prompt)
        self.assertIn("2. [2024-01-02] change number 2", prompt)
        self.assertIn("commit_indices", prompt)

    def test_prompt_truncates_file_list(self):
        commit = CommitRecord(
            hash="abcdef01",
            author="Ada",
            date=date(2024, 1, 1),
            message="big change",
            project="app",
            files=tuple(f"M\tf{i}.py" for i in range(8)),
        )
        line = CommitClassifier(Mock())._format_commit(1, commit)
        self.assertIn("f4.py", line)
        self.assertNotIn("f5.py", line)
        self.assertIn("8 files in total", line)


class TestClassifyCommit(unittest.TestCase):
    def setUp(self):
        self.commit = make_commits(1)[0]

    def test_problem_classification(self):
        llm = Mock()
        llm.generate.return_value = (
            '{"type": "problem", "category": "bug fix", '
            '"description": "Fix crash on login", "related_id": "123"}'
        )
        result = CommitClassifier(llm).classify_commit(self.commit)

        self.assertEqual(result.kind, KIND_PROBLEM)
        self.assertEqual(result.category, "bug fix")
        self.assertEqual(result.related_id, "123")
        _, kwargs = llm.generate.call_args
        self.assertEqual(kwargs["temperature"], COMMIT_TEMPERATURE)
        self.assertEqual(kwargs["max_tokens"], COMMIT_MAX_TOKENS)

    def test_task_classification_defaults(self):
        llm = Mock()
        llm.generate.return_value = '{"type": "task"}'
        result = CommitClassifier(llm).classify_commit(self.commit)
        self.assertEqual(result.kind, KIND_TASK)
        self.assertEqual(result.category, UNCATEGORIZED)
        self.assertEqual(result.description, self.commit.message)
        self.assertEqual(result.related_id, NO_RELATED_ID)

    def test_failure_uses_commit_message(self):
        long_commit = CommitRecord(
            hash="abcdef01",
            author="Ada",
            date=date(2024, 1, 1),
            message="x" * 80,
            project="app",
        )
        llm = Mock()
        llm.generate.side_effect = LLMError("timeout")
        with self.assertLogs("weekly_report.llm.commit_classifier", level="WARNING"):
            result = CommitClassifier(llm).classify_commit(long_commit)
        self.assertEqual(result.kind, KIND_TASK)
        self.assertEqual(result.description, "x" * 50)
        self.assertEqual(result.related_id, NO_RELATED_ID)

    def test_non_object_answer_falls_back(self):
        llm = Mock()
        llm.generate.return_value = "[1, 2]"
        with self.assertLogs("weekly_report.llm.commit_classifier", level="WARNING"):
            result = CommitClassifier(llm).classify_commit(self.commit)
        self.assertEqual(result.kind, KIND_TASK)


if __name__ == "__main__":
    unittest.main()

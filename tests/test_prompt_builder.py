"""
Tests for prompt construction and the question type profiles.
"""
import pytest

from database.models import QuestionType
from generation.prompt_builder import QUESTION_TYPE_PROFILES, NO_NOTES, build_prompt, get_profile
from generation.schemas import QuestionConfig, TopicAllocation, ReferenceQuestion


def _config(question_type=QuestionType.MCQ) -> QuestionConfig:
    return QuestionConfig(exam_id=1, course_id=1, question_type=question_type, number_of_questions=5)


TOPIC = TopicAllocation(topic_id=7, topic_name="Scheduling", weightage=12, questions_to_generate=3)


def _prompt(question_type=QuestionType.MCQ, notes="Round robin", previous=(), generated=(), session=()):
    return build_prompt(_config(question_type), TOPIC, notes, list(previous), list(generated), list(session))


class TestProfiles:
    def test_every_type_has_a_profile(self):
        assert set(QUESTION_TYPE_PROFILES) == set(QuestionType)

    @pytest.mark.parametrize("question_type,has_options", [
        (QuestionType.MCQ, True),
        (QuestionType.MSQ, True),
        (QuestionType.NAT, False),
        (QuestionType.SUB, False),
    ])
    def test_option_presence(self, question_type, has_options):
        assert get_profile(question_type).has_options is has_options

    def test_profile_lookup_by_value(self):
        assert get_profile("NAT").question_type is QuestionType.NAT


class TestBuildPrompt:
    def test_topic_and_notes(self):
        prompt = _prompt(notes="Round robin, SJF")
        assert "TOPIC: Scheduling" in prompt
        assert "Round robin, SJF" in prompt

    def test_missing_notes_fallback(self):
        assert NO_NOTES in _prompt(notes="  ")

    def test_previous_questions_marked_do_not_copy(self):
        prompt = _prompt(previous=[
            ReferenceQuestion(question_statement="What is FCFS?", options=["(A) x", "(B) y"], answer="A",
                              solution="By definition"),
            ReferenceQuestion(question_statement="Draw the Gantt chart", answer="-", has_diagram=True),
        ])
        assert "DO NOT copy" in prompt
        assert "PYQ 1:\nQuestion: What is FCFS?" in prompt
        assert 'Options: ["(A) x", "(B) y"]' in prompt
        assert "Solution: By definition" in prompt
        assert "PYQ 2:\nQuestion: Draw the Gantt chart" in prompt
        assert "This question has a diagram" in prompt

    def test_generated_sample_marked_do_not_repeat(self):
        prompt = _prompt(generated=[ReferenceQuestion(question_statement="Old generated one")])
        assert "ALREADY GENERATED QUESTIONS (DO NOT repeat" in prompt
        assert "Generated 1:\nQuestion: Old generated one" in prompt

    def test_session_statements_listed_in_order(self):
        prompt = _prompt(session=["First", "Second"])
        assert "QUESTIONS GENERATED IN THIS SESSION (DO NOT repeat):" in prompt
        assert prompt.index("Session 1:\nQuestion: First") < prompt.index("Session 2:\nQuestion: Second")

    def test_empty_samples_omit_sections(self):
        prompt = _prompt()
        assert "ALREADY GENERATED QUESTIONS" not in prompt
        assert "QUESTIONS GENERATED IN THIS SESSION" not in prompt

    def test_mcq_rules_and_schema(self):
        prompt = _prompt(QuestionType.MCQ)
        assert "MCQ (Single Correct)" in prompt
        assert '"answer": "Single letter (A, B, C, or D)"' in prompt
        assert '"options": ["(A) option 1"' in prompt

    def test_msq_rules_and_schema(self):
        prompt = _prompt(QuestionType.MSQ)
        assert "MSQ (Multiple Select)" in prompt
        assert "Comma-separated letters" in prompt

    def test_nat_has_no_options(self):
        prompt = _prompt(QuestionType.NAT)
        assert "NAT (Numerical Answer Type)" in prompt
        assert '"options": []' in prompt
        assert '"answer": "Numerical answer"' in prompt

    def test_sub_has_no_options(self):
        prompt = _prompt(QuestionType.SUB)
        assert "SUB (Subjective)" in prompt
        assert '"options": []' in prompt
        assert "MCQ (Single Correct)" not in prompt

    def test_katex_examples_survive_formatting(self):
        prompt = _prompt()
        assert "$\\frac{a}{b}$" in prompt
        assert "$\\alpha$" in prompt
        assert prompt.rstrip().endswith("Generate the question now:")

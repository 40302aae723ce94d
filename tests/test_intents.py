import pytest

from medisco_bot.chatbot import intents
from medisco_bot.chatbot.state import ConversationState


@pytest.fixture
def state():
    return ConversationState()


@pytest.mark.parametrize("text,expected", [
    ("my name is Sam", intents.INTENT_NAME),
    ("what are your visiting hours?", intents.INTENT_QUESTION),
    ("how are you", intents.INTENT_SMALL_TALK),
    ("tell me a joke", intents.INTENT_SMALL_TALK),
    ("hello", intents.INTENT_SMALL_TALK),
    ("I feel dizzy", intents.INTENT_SYMPTOM),
    ("show available doctors", intents.INTENT_AVAILABLE_DOCTORS),
    ("list all doctors", intents.INTENT_ALL_DOCTORS),
    ("when is my appointment", intents.INTENT_APPOINTMENT_RECALL),
    ("ok bye", intents.INTENT_GOODBYE),
    ("Is Dr. Smith available tomorrow", intents.INTENT_DOCTOR_AVAILABILITY),
    ("best neurologist", intents.INTENT_BEST_SPECIALIST),
    ("remind me to call mum at 5:30 pm", intents.INTENT_REMINDER),
    ("I want to book", intents.INTENT_BOOK),
    ("find me a specialist", intents.INTENT_FIND_DOCTOR),
    ("opening hours please", intents.INTENT_HOURS_FAQ),
    ("where is the emergency room", intents.INTENT_EMERGENCY_FAQ),
    ("do you take insurance", intents.INTENT_BILLING_FAQ),
    ("recommend a movie", intents.INTENT_IRRELEVANT),
    ("blah blah", intents.INTENT_FALLBACK),
])
def test_classify(state, text, expected):
    assert intents.classify(text, state) == expected


def test_teaching_answer_preempts_everything(state):
    state.teaching.active = True
    for text in ("bye", "my name is Sam", "what?", "recommend a movie"):
        assert intents.classify(text, state) == intents.INTENT_TEACH_ANSWER


def test_name_only_until_known(state):
    assert intents.classify("I'm Sam", state) == intents.INTENT_NAME
    state.user_name = "Sam"
    assert intents.classify("I'm Sam", state) == intents.INTENT_FALLBACK


def test_rule_order_resolves_overlaps(state):
    # question mark wins over greeting, symptoms over doctor lookup
    assert intents.classify("hello?", state) == intents.INTENT_QUESTION
    assert intents.classify("my chest hurts, need a doctor", state) == intents.INTENT_SYMPTOM
    # joke request is small talk, not the irrelevant "joke" keyword
    assert intents.classify("tell me a joke", state) == intents.INTENT_SMALL_TALK
    # specific doctor listing beats the generic doctor route
    assert intents.classify("doctors available", state) == intents.INTENT_AVAILABLE_DOCTORS
    # recall beats the generic appointment route
    assert intents.classify("my appointment details", state) == intents.INTENT_APPOINTMENT_RECALL


def test_greeting_needs_a_whole_word(state):
    assert intents.small_talk_topic("which room") is None
    assert intents.small_talk_topic("Hey there") == intents.TOPIC_GREETING


def test_irrelevant_keywords_are_substrings(state):
    # known limitation: any word containing a keyword counts
    assert intents.classify("endgame", state) == intents.INTENT_IRRELEVANT


def test_rules_are_ordered_as_documented():
    names = [r.name for r in intents.RULES]
    assert names[0] == intents.INTENT_TEACH_ANSWER
    assert names.index(intents.INTENT_NAME) < names.index(intents.INTENT_QUESTION)
    assert names.index(intents.INTENT_REMINDER) < names.index(intents.INTENT_BOOK)
    assert names[-1] == intents.INTENT_IRRELEVANT

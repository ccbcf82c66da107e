import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.core.query_parser import (  # noqa: E402
    STOP_WORDS,
    ParsedQuery,
    QueryParser,
    parse_search_query,
)


@pytest.mark.parametrize("text", ["", "   ", None, "\t\n"])
def test_blank_input_gives_empty_query(text):
    parsed = parse_search_query(text)
    assert parsed == ParsedQuery()
    assert parsed.is_empty
    assert parsed.search_words == ()
    assert parsed.min_followers is None
    assert parsed.detected_platforms == ()
    assert parsed.detected_country is None


def test_follower_count_with_suffix_word():
    parsed = parse_search_query("100k followers")
    assert parsed.min_followers == 100000
    assert parsed.search_words == ()


def test_fractional_millions_and_subscribers():
    parsed = parse_search_query("1.5M subscribers fitness")
    assert parsed.min_followers == 1500000
    assert parsed.search_words == ("fitness",)


def test_platform_detection():
    parsed = parse_search_query("youtube tech reviewer")
    assert set(parsed.detected_platforms) == {"youtube"}
    assert parsed.search_words == ("tech", "reviewer")


def test_multi_word_country():
    parsed = parse_search_query("south korea beauty")
    assert parsed.detected_country == "South Korea"
    assert parsed.search_words == ("beauty",)


def test_country_platform_and_followers_together():
    parsed = parse_search_query("usa fashion blogger 50k+")
    assert parsed.detected_country == "United States"
    assert parsed.min_followers == 50000
    assert "fashion" in parsed.search_words
    assert "blogger" in parsed.search_words
    assert "usa" not in parsed.search_words


def test_comma_grouped_fallback_is_literal():
    parsed = parse_search_query("travel vloggers with 100,000+ followers")
    assert parsed.min_followers == 100000
    assert parsed.search_words == ("travel", "vloggers")


def test_abbreviated_count_wins_over_grouped():
    parsed = parse_search_query("1,000 cats 20k")
    assert parsed.min_followers == 20000
    assert "cats" in parsed.search_words


def test_only_first_follower_count_is_used():
    parsed = parse_search_query("10k to 50k gaming")
    assert parsed.min_followers == 10000
    assert parsed.max_followers is None
    assert "50" not in parsed.search_words
    assert "gaming" in parsed.search_words


def test_rounds_half_up():
    assert parse_search_query("1.0005k").min_followers == 1001
    assert parse_search_query("2.5m").min_followers == 2500000


def test_unit_letter_must_end_the_number():
    parsed = parse_search_query("top 5 makeup artists")
    assert parsed.min_followers is None
    assert parsed.search_words == ("top", "makeup", "artists")


def test_subs_abbreviation_is_consumed():
    parsed = parse_search_query("200k subs gaming")
    assert parsed.min_followers == 200000
    assert parsed.search_words == ("gaming",)


def test_case_insensitive_and_punctuation_stripped():
    parsed = parse_search_query("  Find me TikTok DANCERS, in India!  ")
    assert parsed.detected_platforms == ("tiktok",)
    assert parsed.detected_country == "India"
    assert parsed.search_words == ("dancers",)


def test_multiple_platforms_deduplicated_in_order():
    parsed = parse_search_query("instagram or youtube or instagram chefs")
    assert parsed.detected_platforms == ("instagram", "youtube")
    assert parsed.search_words == ("chefs",)


def test_first_single_word_country_wins():
    parsed = parse_search_query("uk fashion india")
    assert parsed.detected_country == "United Kingdom"
    assert "uk" not in parsed.search_words
    assert "india" in parsed.search_words


def test_phrase_country_without_single_word_alias():
    parsed = parse_search_query("united states gamers")
    assert parsed.detected_country == "United States"
    assert parsed.search_words == ("gamers",)


def test_saudi_arabia_phrase():
    parsed = parse_search_query("saudi arabia food")
    assert parsed.detected_country == "Saudi Arabia"
    assert parsed.search_words == ("food",)


def test_short_tokens_dropped():
    parsed = parse_search_query("a b c yoga x")
    assert parsed.search_words == ("yoga",)


def test_duplicates_are_kept():
    parsed = parse_search_query("yoga yoga")
    assert parsed.search_words == ("yoga", "yoga")


@pytest.mark.parametrize(
    "text",
    [
        "I want to find the best fitness influencers",
        "show me who is looking for a plus size model",
        "what are they like on twitch and how much",
        "get me all of their 1m+ followers accounts",
    ],
)
def test_search_words_never_contain_stop_words(text):
    parsed = parse_search_query(text)
    assert not set(parsed.search_words) & STOP_WORDS
    assert all(len(word) > 1 for word in parsed.search_words)


def test_parse_is_deterministic():
    parser = QueryParser()
    text = "usa youtube beauty 250k+ subscribers"
    assert parser.parse(text) == parser.parse(text)


def test_custom_vocabulary():
    parser = QueryParser(platforms=["threads"], country_aliases={"nz": "New Zealand"})
    parsed = parser.parse("threads nz bakers youtube")
    assert parsed.detected_platforms == ("threads",)
    assert parsed.detected_country == "New Zealand"
    assert parsed.search_words == ("bakers", "youtube")


def test_to_dict_shape():
    parsed = parse_search_query("tiktok 10k")
    assert parsed.to_dict() == {
        "search_words": [],
        "min_followers": 10000,
        "max_followers": None,
        "detected_platforms": ["tiktok"],
        "detected_country": None,
    }

"""Tests for blocklist domain matching."""

import pytest

from sitetrust.blocklist import BlockList, analyze_against_all_lists, format_list_label, matches


@pytest.mark.parametrize("domain", ["example.com", "phishing-test.tk", "a.b.c.example.org"])
def test_matcher_properties(domain):
    assert matches(domain, [domain])
    assert matches("sub." + domain, [domain])
    assert matches(domain, ["*." + domain])
    assert matches("deep.sub." + domain, ["*." + domain])


def test_no_match_for_unrelated_domain():
    assert not matches("other.com", ["example.com"])


def test_parent_entry_requires_label_boundary():
    assert not matches("notexample.com", ["example.com"])


def test_wildcard_requires_label_boundary():
    assert not matches("notexample.com", ["*.example.com"])


def test_matching_normalizes_input():
    assert matches("WWW.Example.COM.", ["example.com"])
    assert matches("shop.example.com", ["Example.COM"])


def test_empty_inputs_never_match():
    assert not matches("", ["example.com"])
    assert not matches("example.com", [])
    assert not matches("example.com", ["*."])


def test_entries_do_not_match_their_parents():
    assert not matches("example.com", ["sub.example.com"])


@pytest.mark.parametrize(
    "name,label",
    [
        ("phishing.txt", "Phishing"),
        ("fake-shops.txt", "Fake shops"),
        ("crypto_scams.txt", "Crypto scams"),
        ("lists/porn.txt", "Porn"),
        ("malware", "Malware"),
        ("scam.hosts", "Scam"),
        ("adult_sites.list", "Adult sites"),
    ],
)
def test_format_list_label(name, label):
    assert format_list_label(name) == label


class TestAnalyzeAgainstAllLists:
    """Match labels across several lists."""

    def test_labels_follow_list_order(self):
        lists = [
            BlockList("scam.txt", ("example.com",)),
            BlockList("drugs.txt", ("other.org",)),
            BlockList("phishing.txt", ("*.example.com",)),
        ]
        assert analyze_against_all_lists("login.example.com", lists) == [
            '✗ Matched "Scam"',
            '✗ Matched "Phishing"',
        ]

    def test_duplicate_list_names_reported_once(self):
        lists = [
            BlockList("phishing.txt", ("example.com",)),
            BlockList("phishing.txt", ("example.com",)),
        ]
        assert analyze_against_all_lists("example.com", lists) == ['✗ Matched "Phishing"']

    def test_empty_lists_are_skipped(self):
        lists = [BlockList("malware.txt"), BlockList("fraud.txt", ("example.com",))]
        assert analyze_against_all_lists("example.com", lists) == ['✗ Matched "Fraud"']

    def test_no_matches(self):
        assert analyze_against_all_lists("safe.org", [BlockList("scam.txt", ("example.com",))]) == []

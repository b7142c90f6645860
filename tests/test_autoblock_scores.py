import sqlite3

import pytest

from autoblock_scores.errors import RuleConfigError, UserNotFoundError
from autoblock_scores.scoring import compute_score

RULE_IDS = {
    "about_blank": 1,
    "activities_blank": 2,
    "links_in_comments_or_about": 3,
    "email_unconfirmed": 4,
    "email_domain": 5,
    "links_in_comments_or_about_with_domains": 6,
}

ABOUT_WITH_LINK = 'Hi visit my <a href="http://itsatrap.com/test">site</a>!'
COMMENT_WITH_LINK = "You can visit the site http://itsanothertrap.com/test"


def make_rule(rule_type, weight=10, allowlist="", blocklist="", application_type="positive"):
    return {
        "id": RULE_IDS[rule_type],
        "type": rule_type,
        "weight": weight,
        "allowlist": allowlist,
        "blocklist": blocklist,
        "application_type": application_type,
    }


def score_of_rule(scores, rule):
    return next(value for key, value in scores.items() if key.endswith(f"- {rule['id']}"))


def scores_for(storage, user_id, rules):
    storage.set_config("orgA", "users_autoblocks", rules)
    return compute_score(user_id).as_dict()


SATISFIED = [
    ({}, 10),
    ({"allowlist": "spam.org"}, 0),
    ({"blocklist": "spam.org"}, 10),
    ({"application_type": "negative"}, 0),
]

UNSATISFIED = [
    ({}, 0),
    ({"allowlist": "spam.org"}, 0),
    ({"blocklist": "spam.org"}, 0),
    ({"application_type": "negative"}, 10),
]

USERS = {
    "about_blank": {
        "satisfied": [{"about": None}],
        "unsatisfied": [{"about": "Hi, I'm a great person"}],
    },
    "activities_blank": {
        "satisfied": [{}],
        "unsatisfied": [{"contents": ["first", "second", "third"]}],
    },
    "links_in_comments_or_about": {
        "satisfied": [{"about": ABOUT_WITH_LINK}, {"about": "Hi, here I am", "contents": [COMMENT_WITH_LINK]}],
        "unsatisfied": [{"about": "Hi, here I am"}],
    },
    "email_unconfirmed": {
        "satisfied": [{"confirmed": False}],
        "unsatisfied": [{"confirmed": True}],
    },
}


def _matrix():
    for rule_type, states in USERS.items():
        for state, cases in (("satisfied", SATISFIED), ("unsatisfied", UNSATISFIED)):
            for user_kwargs in states[state]:
                for rule_kwargs, expected in cases:
                    yield pytest.param(rule_type, user_kwargs, rule_kwargs, expected, id=f"{rule_type}-{state}-{rule_kwargs or 'plain'}")


@pytest.mark.parametrize("rule_type,user_kwargs,rule_kwargs,expected", list(_matrix()))
def test_rule_matrix(storage, make_user, rule_type, user_kwargs, rule_kwargs, expected):
    user_id = make_user(email="user@spam.org", **user_kwargs)
    rule = make_rule(rule_type, **rule_kwargs)
    scores = scores_for(storage, user_id, [rule])
    assert scores["total_score"] == expected
    assert score_of_rule(scores, rule) == expected


def test_no_rules_returns_zero(storage, make_user):
    user_id = make_user()
    assert scores_for(storage, user_id, []) == {"total_score": 0}


def test_missing_config_returns_zero(make_user):
    user_id = make_user()
    assert compute_score(user_id).as_dict() == {"total_score": 0}


@pytest.mark.parametrize(
    "rule_type,label",
    [
        ("about_blank", "About user section is blank - 1"),
        ("activities_blank", "User has not created contents - 2"),
        ("links_in_comments_or_about", "Comments or about section contains links - 3"),
        ("email_unconfirmed", "User email is not confirmed - 4"),
        ("email_domain", "Email domain included in list - 5"),
        (
            "links_in_comments_or_about_with_domains",
            "Comments or about section contains links with domains in allowlists or blocklists - 6",
        ),
    ],
)
def test_rule_labels(storage, make_user, rule_type, label):
    user_id = make_user()
    scores = scores_for(storage, user_id, [make_rule(rule_type)])
    assert "total_score" in scores
    assert label in scores


@pytest.mark.parametrize(
    "blocklist,allowlist,application_type,expected",
    [
        ("blockme.com", "", "positive", 10),
        ("blockme.com", "blockme.com", "positive", 0),
        ("blockme.com", "", "negative", 0),
        ("example.org", "", "positive", 0),
        ("example.org", "blockme.com", "positive", 0),
        ("example.org", "", "negative", 0),
    ],
)
def test_email_domain_rule(storage, make_user, blocklist, allowlist, application_type, expected):
    user_id = make_user(email="user@blockme.com")
    rule = make_rule("email_domain", allowlist=allowlist, blocklist=blocklist, application_type=application_type)
    scores = scores_for(storage, user_id, [rule])
    assert scores["total_score"] == expected
    assert score_of_rule(scores, rule) == expected


@pytest.mark.parametrize(
    "user_kwargs,domain",
    [
        ({"about": ABOUT_WITH_LINK}, "itsatrap.com"),
        ({"about": "Hi, here I am", "contents": [COMMENT_WITH_LINK]}, "itsanothertrap.com"),
    ],
)
@pytest.mark.parametrize(
    "list_kind,application_type,expected",
    [
        (None, "positive", 10),
        ("allowlist", "positive", 0),
        ("blocklist", "positive", 10),
        (None, "negative", 0),
    ],
)
def test_links_with_domains_rule(storage, make_user, user_kwargs, domain, list_kind, application_type, expected):
    user_id = make_user(**user_kwargs)
    rule_kwargs = {"application_type": application_type}
    if list_kind:
        rule_kwargs[list_kind] = domain
    rule = make_rule("links_in_comments_or_about_with_domains", **rule_kwargs)
    scores = scores_for(storage, user_id, [rule])
    assert scores["total_score"] == expected
    assert score_of_rule(scores, rule) == expected


@pytest.mark.parametrize("rule_kwargs,expected", UNSATISFIED)
def test_links_with_domains_rule_without_links(storage, make_user, rule_kwargs, expected):
    user_id = make_user(about="Hi, here I am")
    rule = make_rule("links_in_comments_or_about_with_domains", **rule_kwargs)
    scores = scores_for(storage, user_id, [rule])
    assert scores["total_score"] == expected


def test_links_with_domains_ignores_email_domain(storage, make_user):
    user_id = make_user(email="user@itsatrap.com", about="Hi, here I am", contents=["see https://fine.org/x"])
    rule = make_rule("links_in_comments_or_about_with_domains", blocklist="itsatrap.com")
    assert scores_for(storage, user_id, [rule])["total_score"] == 0


def test_links_with_domains_matches_subdomains(storage, make_user):
    user_id = make_user(about='<a href="https://Promo.ItsATrap.com/win">win</a>')
    rule = make_rule("links_in_comments_or_about_with_domains", blocklist="itsatrap.com")
    assert scores_for(storage, user_id, [rule])["total_score"] == 10


def test_total_is_sum_of_rules(storage, make_user):
    user_id = make_user(about=None, email="user@blockme.com")
    rules = [
        make_rule("about_blank", weight=10),
        make_rule("activities_blank", weight=5),
        make_rule("email_unconfirmed", weight=2.5),
        make_rule("email_domain", weight=7, blocklist="blockme.com"),
        make_rule("links_in_comments_or_about", weight=3),
    ]
    scores = scores_for(storage, user_id, rules)
    per_rule = {key: value for key, value in scores.items() if key != "total_score"}
    assert len(per_rule) == 5
    assert scores["total_score"] == sum(per_rule.values()) == 24.5


def test_rule_order_does_not_change_result(storage, make_user):
    user_id = make_user(about=None)
    rules = [make_rule("about_blank", weight=4), make_rule("email_unconfirmed", weight=6), make_rule("activities_blank", weight=1)]
    forward = scores_for(storage, user_id, rules)
    backward = scores_for(storage, user_id, list(reversed(rules)))
    assert forward == backward
    assert forward["total_score"] == 11


def test_unknown_rule_type_is_skipped(storage, make_user):
    user_id = make_user(about=None)
    rules = [
        {"id": 99, "type": "phase_of_the_moon", "weight": 50, "allowlist": "", "blocklist": "", "application_type": "positive"},
        make_rule("about_blank"),
    ]
    scores = scores_for(storage, user_id, rules)
    assert scores == {"total_score": 10, "About user section is blank - 1": 10}


def test_explicit_rules_bypass_config_store(storage, make_user):
    user_id = make_user(about=None)
    storage.set_config("orgA", "users_autoblocks", [make_rule("about_blank", weight=99)])
    result = compute_score(user_id, rules=[make_rule("about_blank", weight=10)])
    assert result.total_score == 10


def test_rules_are_read_per_organization(storage, make_user):
    user_a = make_user(user_id="ua", about=None, organization_id="orgA")
    user_b = make_user(user_id="ub", about=None, organization_id="orgB")
    storage.set_config("orgA", "users_autoblocks", [make_rule("about_blank", weight=10)])
    storage.set_config("orgB", "users_autoblocks", [make_rule("about_blank", weight=3)])
    assert compute_score(user_a).total_score == 10
    assert compute_score(user_b).total_score == 3


def test_html_only_about_counts_as_blank(storage, make_user):
    user_id = make_user(about="<p> </p>")
    assert scores_for(storage, user_id, [make_rule("about_blank")])["total_score"] == 10


def test_unknown_user_raises(storage):
    with pytest.raises(UserNotFoundError):
        compute_score("nobody", rules=[])


def test_invalid_rule_config_raises(storage, make_user):
    user_id = make_user()
    storage.set_config("orgA", "users_autoblocks", [{"id": 1, "type": "about_blank", "weight": -1}])
    with pytest.raises(RuleConfigError):
        compute_score(user_id)


def test_duplicated_rule_ids_raise(storage, make_user):
    user_id = make_user()
    with pytest.raises(RuleConfigError):
        compute_score(user_id, rules=[make_rule("about_blank"), make_rule("about_blank")])


def test_link_in_oldest_comment_is_found(storage, make_user):
    user_id = make_user(contents=["http://old.com/x", "plain comment", "another plain comment"])
    rule = make_rule("links_in_comments_or_about")
    assert scores_for(storage, user_id, [rule]) == {"total_score": 10, "Comments or about section contains links - 3": 10}


def test_link_behind_many_comments_is_found(storage, make_user):
    user_id = make_user(contents=["http://old.com/x"] + [f"plain comment {i}" for i in range(520)])
    rules = [
        make_rule("links_in_comments_or_about"),
        make_rule("links_in_comments_or_about_with_domains", blocklist="old.com"),
    ]
    scores = scores_for(storage, user_id, rules)
    assert scores["total_score"] == 20


def test_prose_without_links_does_not_score(storage, make_user):
    user_id = make_user(about="Awww.so cute", contents=['<a href="#top">back to top</a>'])
    rule = make_rule("links_in_comments_or_about")
    assert score_of_rule(scores_for(storage, user_id, [rule]), rule) == 0


def test_international_email_domain_is_blocklisted(storage, make_user):
    user_id = make_user(email="user@bücher.de")
    rule = make_rule("email_domain", blocklist="xn--bcher-kva.de")
    assert score_of_rule(scores_for(storage, user_id, [rule]), rule) == 10


class _BrokenContents:
    def __init__(self, storage, fail_on):
        self._storage = storage
        self._fail_on = fail_on

    def __getattr__(self, name):
        if name == self._fail_on:
            def _fail(*args, **kwargs):
                raise sqlite3.OperationalError("database is locked")
            return _fail
        return getattr(self._storage, name)


@pytest.mark.parametrize(
    "fail_on,rule_type",
    [
        ("count_contents", "activities_blank"),
        ("iter_content_bodies", "links_in_comments_or_about"),
        ("iter_content_bodies", "links_in_comments_or_about_with_domains"),
    ],
)
def test_content_access_errors_propagate(storage, make_user, fail_on, rule_type):
    user_id = make_user(contents=["plain comment"])
    broken = _BrokenContents(storage, fail_on)
    with pytest.raises(sqlite3.OperationalError):
        compute_score(user_id, rules=[make_rule("email_domain"), make_rule(rule_type)], storage=broken)

# tests/test_cognito_mapping.py
from checkin_api.services.cognito import mapping
from checkin_api.services.cognito.dedup import TTLDedup


def test_unwrap_variants():
    inner = {"Email": "a@b.c"}
    assert mapping.unwrap({"entry": inner}) == inner
    assert mapping.unwrap({"entries": [inner]}) == inner
    assert mapping.unwrap({"data": inner}) == inner
    assert mapping.unwrap({"fields": inner}) == inner
    assert mapping.unwrap(inner) == inner
    assert mapping.unwrap(["not", "a", "dict"]) == {}


def test_pick_prefers_first_non_empty_candidate_and_walks_paths():
    entry = {"email": "  ", "Email": " ana@example.com ", "Name": {"First": "Ana", "Last": "Cruz"}}
    assert mapping.pick_str(entry, ("email", "Email")) == "ana@example.com"
    assert mapping.pick_str(entry, ("Name.First",)) == "Ana"
    assert mapping.pick_str({"Name.First": "Literal"}, ("Name.First",)) == "Literal"
    assert mapping.pick_str(entry, ("missing",)) is None


def test_map_helps_member():
    body = {
        "entry": {
            "Name": {"First": "Ana", "Last": "Cruz"},
            "Email": "Ana@Example.com",
            "Phone": "(0917) 555-0000",
            "MinistryApprovedFor": "Ushers",
            "IsIndividualNewToHelpsMinistry": "Yes",
            "Form": {"Id": "12", "InternalName": "HelpsMember"},
            "Entry": {"Id": "12-7"},
        }
    }
    mapped = mapping.map_helps_member(body)
    assert mapped["first_name"] == "Ana"
    assert mapped["last_name"] == "Cruz"
    assert mapped["ministry"] == "Ushers"
    assert mapped["is_new"] is True
    assert mapped["raw_is_new"] == "Yes"
    assert mapped["form_internal"] == "HelpsMember"
    assert mapping.entry_id(body) == "12-7"


def test_parse_yes_no():
    assert mapping.parse_yes_no(" YES ") is True
    assert mapping.parse_yes_no("n") is False
    assert mapping.parse_yes_no("") is None
    assert mapping.parse_yes_no("maybe") is None


def test_split_list_and_removal_classification():
    assert mapping.split_list("Ushers; Choir,\nushers") == ["Ushers", "Choir"]
    assert mapping.split_list(["Choir", " ", None]) == ["Choir"]
    assert mapping.split_list(None) == []

    assert mapping.is_membership_removal(["Membership Change"], "Remove from ministry")
    assert not mapping.is_membership_removal(["Contact Info"], "Remove from ministry")
    assert not mapping.is_membership_removal(["Membership"], "Add ministry")
    assert not mapping.is_membership_removal([], None)


def test_entry_id_absent():
    assert mapping.entry_id({"entry": {"Email": "x@y.z"}}) is None


def test_dedup_marks_and_expires():
    now = [1000.0]
    cache = TTLDedup(ttl=300, clock=lambda: now[0])

    assert cache.check_and_mark("submit", "1") is False
    assert cache.check_and_mark("submit", "1") is True
    # endpoints are tracked separately
    assert cache.check_and_mark("remove", "1") is False

    now[0] += 301
    assert cache.check_and_mark("submit", "1") is False
    assert len(cache) == 1


def test_dedup_never_matches_without_an_entry_id():
    cache = TTLDedup()
    assert cache.check_and_mark("submit", None) is False
    assert cache.check_and_mark("submit", None) is False


def test_dedup_forget_allows_the_entry_again():
    cache = TTLDedup()
    assert cache.check_and_mark("add", "7-1") is False
    cache.forget("add", "7-1")
    assert cache.check_and_mark("add", "7-1") is False
    assert cache.check_and_mark("add", "7-1") is True
    cache.forget("add", None)

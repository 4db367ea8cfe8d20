import datetime as dt

from viewbot import liquibase
from viewbot.manifest import ChangelogClock
from viewbot.results import Outcome

from conftest import MASTER_XML


def clock():
    return ChangelogClock(now=lambda: dt.datetime(2024, 1, 2, 3, 4, 5))


def test_render_view_changelog_escapes_sql():
    xml = liquibase.render_view_changelog("OrderSummary", "order_summary", "SELECT * FROM t WHERE a < 1 AND b = 'x'",
                                          "20240102030405000")
    assert ('<changeSet id="20240102030405000-create-view-order_summary" author="jhipster-view-blueprint" '
            'runOnChange="true">') in xml
    assert '<createView viewName="order_summary" replaceIfExists="true">' in xml
    assert "SELECT * FROM t WHERE a &lt; 1 AND b = &apos;x&apos;" in xml
    assert "Database view for entity: OrderSummary" in xml


def test_next_changelog_reuses_existing_timestamp():
    existing = [
        "20230101000000000_create_view_order_summary.xml",
        "20230601000000000_create_view_order_summary.xml",
        "20230701000000000_create_view_order_summary_archive.xml",
    ]
    assert liquibase.next_changelog(existing, "order_summary", clock()) == (
        "20230601000000000_create_view_order_summary.xml", "20230601000000000")


def test_next_changelog_draws_new_timestamp():
    c = clock()
    assert liquibase.next_changelog([], "v", c) == ("20240102030405000_create_view_v.xml", "20240102030405000")
    assert liquibase.next_changelog([], "w", c)[1] == "20240102030405001"


def test_register_changelog_once():
    once = liquibase.register_changelog(MASTER_XML, "20240102030405000_create_view_order_summary.xml")
    line = ('    <include file="config/liquibase/changelog/20240102030405000_create_view_order_summary.xml" '
            'relativeToChangelogFile="false"/>\n</databaseChangeLog>')
    assert line in once.text
    again = liquibase.register_changelog(once.text, "20240102030405000_create_view_order_summary.xml")
    assert again.outcome is Outcome.SKIPPED_ALREADY_PRESENT
    assert again.text == once.text


def test_remove_table_includes():
    res = liquibase.remove_table_includes(MASTER_XML, "OrderSummary")
    assert res.applied
    assert res.reason == "removed 2 include(s)"
    assert "added_entity" not in res.text
    assert "00000000000000_initial_schema.xml" in res.text
    assert "jhipster-needle-liquibase-add-changelog" in res.text
    assert liquibase.remove_table_includes(res.text, "OrderSummary").outcome is Outcome.SKIPPED_ALREADY_PRESENT


def test_remove_table_includes_matches_whole_entity_name():
    res = liquibase.remove_table_includes(MASTER_XML, "Order")
    assert res.outcome is Outcome.SKIPPED_ALREADY_PRESENT
    assert res.text == MASTER_XML


def test_table_changelog_patterns():
    entity, constraints = liquibase.table_changelog_patterns("OrderSummary")
    assert entity.match("20240101000000_added_entity_OrderSummary.xml")
    assert constraints.match("20240101000000_added_entity_constraints_OrderSummary.xml")
    assert not entity.match("20240101000000_added_entity_OrderSummaryLine.xml")

from decimal import Decimal

import pytest

from conftest import make_config
from social_security.schemas.social_security import CATEGORIES
from social_security.services.calculator import (
    actual_base,
    calculate,
    calculate_contributions,
    calculate_series,
    compute_housing_fund,
)
from social_security.services.errors import CityNotFound, InvalidConfig, InvalidInput
from social_security.services.resolver import ConfigResolver, StaticSource

SALARY_POINTS = ["1", "1500", "2000", "2320", "2321", "2350", "2600", "2636.36", "3000",
                 "5360", "7777.77", "10000", "31884", "31884.01", "50000", "1000000"]


def _legs(result):
    return {it.key: (it.personal, it.company) for it in result.items}


def _protected(**hf):
    rule = {"personal_rate": "0.12", "company_rate": "0.12", "base_lower": "2320", "base_upper": "31884"}
    rule.update(hf)
    return make_config(housing_fund=rule, housing_fund_protection_enabled=True)


# ------------------------------ scenarios ------------------------------ #

def test_beijing_salary_10000(beijing):
    r = calculate_contributions(10000, beijing, "北京")

    legs = _legs(r)
    assert legs["pension"] == (Decimal("800.00"), Decimal("1600.00"))
    assert legs["medical"] == (Decimal("200.00"), Decimal("1000.00"))
    assert legs["unemployment"] == (Decimal("20.00"), Decimal("80.00"))
    assert legs["injury"] == (Decimal("0.00"), Decimal("40.00"))
    assert legs["maternity"] == (Decimal("0.00"), Decimal("80.00"))
    assert legs["housing_fund"] == (Decimal("1200.00"), Decimal("1200.00"))

    assert r.personal_total == Decimal("2220.00")
    assert r.company_total == Decimal("4000.00")
    assert r.total == Decimal("6220.00")
    assert r.after_tax_salary == Decimal("7780.00")
    assert r.city == "北京"
    assert [it.key for it in r.items] == list(CATEGORIES)
    assert r.item("pension").name == "养老保险"


def test_each_category_clamps_against_its_own_range(beijing):
    # 3000 is below the social insurance floor but inside the housing fund range
    r = calculate_contributions(3000, beijing, "北京")

    for key in CATEGORIES[:5]:
        assert r.actual_bases[key] == Decimal("5360")
    assert r.actual_bases["housing_fund"] == Decimal("3000")
    assert r.actual_base == Decimal("5360")
    assert r.housing_fund_actual_base == Decimal("3000")

    assert r.item("pension").personal == Decimal("428.80")
    assert r.item("housing_fund").personal == Decimal("360.00")
    assert r.personal_total == Decimal("906.72")
    assert r.after_tax_salary == Decimal("2093.28")


def test_salary_below_housing_fund_floor_uses_the_floor(beijing):
    r = calculate_contributions(2000, beijing, "北京")
    assert r.housing_fund_actual_base == Decimal("2320")
    assert r.item("housing_fund").personal == Decimal("278.40")


def test_salary_above_ceiling_clamps_to_ceiling(beijing):
    r = calculate_contributions(50000, beijing)
    assert r.actual_base == Decimal("31884")
    assert r.item("pension").personal == Decimal("2550.72")


def test_categories_use_independent_ranges():
    cfg = make_config(
        medical={"personal_rate": "0.02", "company_rate": "0.10", "base_lower": "6000", "base_upper": "20000"},
    )
    r = calculate_contributions(25000, cfg)
    assert r.actual_bases["pension"] == Decimal("25000")
    assert r.actual_bases["medical"] == Decimal("20000")
    assert r.item("medical").personal == Decimal("400.00")


def test_medical_fixed_add_ons():
    cfg = make_config(medical={
        "personal_rate": "0.02", "company_rate": "0.10",
        "base_lower": "5360", "base_upper": "31884",
        "personal_fixed": "3", "company_fixed": "7.5",
    })
    r = calculate_contributions(10000, cfg)
    assert r.item("medical").personal == Decimal("203.00")
    assert r.item("medical").company == Decimal("1007.50")


def test_two_decimal_rounding_is_half_up(beijing):
    r = calculate_contributions("10000.25", beijing)
    assert r.item("unemployment").personal == Decimal("20.00")  # 20.0005
    assert r.item("pension").personal == Decimal("800.02")

    cfg = make_config(pension={"personal_rate": "0.5", "company_rate": "0", "base_lower": "0", "base_upper": "100000"})
    assert calculate_contributions("0.01", cfg).item("pension").personal == Decimal("0.01")  # 0.005


# ------------------------- housing fund protection ------------------------- #

def test_protection_salary_at_or_below_floor():
    r = calculate_contributions(2000, _protected())
    hf = r.item("housing_fund")
    assert hf.personal == Decimal("0")
    assert hf.company == Decimal("278")  # round(2320 * 0.12) = round(278.4)


def test_protection_caps_personal_just_above_floor():
    r = calculate_contributions(2350, _protected())
    hf = r.item("housing_fund")
    assert hf.personal == Decimal("30")
    assert hf.company == Decimal("282")


def test_protection_normal_case_uses_raw_salary():
    r = calculate_contributions(10000, _protected())
    assert r.item("housing_fund").personal == Decimal("1200")
    assert r.item("housing_fund").company == Decimal("1200")


def test_protection_rounds_to_whole_units():
    # 5555 * 0.12 = 666.6 → 667
    hf = compute_housing_fund(Decimal("5555"), _protected().housing_fund, True)
    assert hf.personal == Decimal("667")
    assert hf.company == Decimal("667")


def test_protection_fractional_salary_keeps_net_pay_at_floor():
    # salary - L = 30.6; rounding half up would give 31 and leave 2319.6
    r = calculate_contributions("2350.6", _protected())
    hf = r.item("housing_fund")
    assert hf.personal == Decimal("30")
    assert hf.company == Decimal("282")  # round(282.072)
    assert Decimal("2350.6") - hf.personal >= Decimal("2320")


def test_protection_whole_unit_rounding_never_crosses_floor():
    cfg = _protected(personal_rate="0.05", company_rate="0.05", base_lower="1000", base_upper="30000")
    # 1052.64 * 0.05 = 52.632 rounds to 53, but only 52.64 is above the floor
    hf = calculate_contributions("1052.64", cfg).item("housing_fund")
    assert hf.personal == Decimal("52")
    assert hf.company == Decimal("53")


def test_protection_company_uses_raw_salary_not_clamped_base():
    r = calculate_contributions(40000, _protected())
    assert r.item("housing_fund").company == Decimal("4800")
    assert r.housing_fund_actual_base == Decimal("31884")


def test_protection_disabled_uses_clamped_base(beijing):
    r = calculate_contributions(2000, beijing)
    assert r.item("housing_fund").personal == Decimal("278.40")
    assert r.item("housing_fund").company == Decimal("278.40")


def test_protection_personal_is_monotonic_and_keeps_floor():
    cfg = _protected()
    floor = cfg.housing_fund.base_lower
    previous = Decimal("-1")
    salary = Decimal("1500")
    while salary <= Decimal("3500"):
        personal = calculate_contributions(salary, cfg).item("housing_fund").personal
        assert personal >= previous
        if salary > floor:
            assert salary - personal >= floor
        previous = personal
        salary += Decimal("7.3")


# ------------------------------ properties ------------------------------ #

@pytest.mark.parametrize("salary", SALARY_POINTS)
@pytest.mark.parametrize("protection", [False, True])
def test_totals_and_net_pay_identities(salary, protection):
    cfg = make_config(housing_fund_protection_enabled=protection)
    r = calculate_contributions(salary, cfg)

    assert r.total == r.personal_total + r.company_total
    assert r.personal_total == sum(it.personal for it in r.items)
    assert r.company_total == sum(it.company for it in r.items)
    assert r.after_tax_salary == Decimal(salary) - r.personal_total
    for it in r.items:
        assert it.personal >= 0
        assert it.company >= 0


@pytest.mark.parametrize("salary", SALARY_POINTS)
def test_actual_base_stays_within_range(salary, beijing):
    s = Decimal(salary)
    for key in CATEGORIES:
        rule = beijing.rate(key)
        base = actual_base(s, rule)
        assert rule.base_lower <= base <= rule.base_upper
        if rule.base_lower <= s <= rule.base_upper:
            assert base == s


def test_same_input_same_result(beijing):
    before = beijing.model_dump()
    first = calculate_contributions(8888.88, beijing, "北京")
    second = calculate_contributions(8888.88, beijing, "北京")
    assert first == second
    assert beijing.model_dump() == before


# -------------------------------- failures -------------------------------- #

@pytest.mark.parametrize("salary", [0, -1, "-0.01", None, "abc", float("nan"), float("inf"), True, [1]])
def test_invalid_salary(salary, beijing):
    with pytest.raises(InvalidInput):
        calculate_contributions(salary, beijing)


@pytest.mark.parametrize("salary", ["1e30", 1e26, "10000000000"])
def test_salary_beyond_computable_range(salary, beijing):
    with pytest.raises(InvalidInput) as ei:
        calculate_contributions(salary, beijing)
    assert ei.value.message == "工资超出可计算范围"


def test_largest_salary_still_computes():
    cfg = make_config(pension={"personal_rate": "1", "company_rate": "1", "base_lower": "0", "base_upper": "9999999999.99"})
    r = calculate_contributions("9999999999.99", cfg)
    assert r.item("pension").personal == Decimal("9999999999.99")


def test_huge_fixed_add_on_is_invalid_config():
    cfg = make_config(medical={
        "personal_rate": "0.02", "company_rate": "0.10",
        "base_lower": "5360", "base_upper": "31884",
        "personal_fixed": "1e30",
    })
    with pytest.raises(InvalidConfig) as ei:
        calculate_contributions(10000, cfg)
    assert ei.value.category == "medical"


def test_invalid_config_is_rejected_before_compute():
    cfg = make_config(injury={"personal_rate": "0", "company_rate": "0.004", "base_lower": "9000", "base_upper": "9000"})
    with pytest.raises(InvalidConfig) as ei:
        calculate_contributions(10000, cfg)
    assert ei.value.category == "injury"


def test_calculate_resolves_static_city():
    resolver = ConfigResolver([StaticSource()])
    r = calculate(10000, " 北京 ", resolver=resolver)
    assert r.city == "北京"
    assert r.item("pension").personal == Decimal("800.00")


def test_calculate_prefers_caller_override(beijing):
    resolver = ConfigResolver([StaticSource()])
    override = make_config(pension={"personal_rate": "0.1", "company_rate": "0.2", "base_lower": "1", "base_upper": "99999"})
    r = calculate(10000, "北京", override, resolver=resolver)
    assert r.item("pension").personal == Decimal("1000.00")


def test_calculate_unknown_city():
    with pytest.raises(CityNotFound):
        calculate(10000, "火星", resolver=ConfigResolver([StaticSource()]))


@pytest.mark.parametrize("city", ["", "   ", None])
def test_calculate_blank_city(city):
    with pytest.raises(InvalidInput):
        calculate(10000, city, resolver=ConfigResolver([StaticSource()]))


def test_series_rederives_each_point(beijing):
    points = calculate_series([3000, 10000, 50000], beijing, "北京")
    assert [p.base_salary for p in points] == [Decimal("3000"), Decimal("10000"), Decimal("50000")]
    assert points[1] == calculate_contributions(10000, beijing, "北京")


def test_series_rejects_any_bad_point(beijing):
    with pytest.raises(InvalidInput):
        calculate_series([3000, -5], beijing)


def test_salary_shares(beijing):
    shares = calculate_contributions(10000, beijing).salary_shares()
    assert shares == {
        "personal": Decimal("22.20"),
        "company": Decimal("40.00"),
        "total": Decimal("62.20"),
        "after_tax": Decimal("77.80"),
    }

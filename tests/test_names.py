import pytest

from pesde.names import (
    ErrorReason,
    PackageName,
    PackageNameError,
    PackageNamesError,
    WallyPackageName,
    WallyPackageNameError,
    from_escaped,
    parse_package_names,
)


def test_parse_valid_name():
    name = PackageName.parse("acme/widget")
    assert name.scope == "acme"
    assert name.name == "widget"
    assert str(name) == "acme/widget"


def test_escaped_pinned():
    assert PackageName.parse("acme/widget").escaped() == "acme+widget"


@pytest.mark.parametrize("text", ["acme/widget", "ab_c/x", "a1b/2c", "scope9/n_a_m_e"])
def test_escaped_round_trip(text):
    name = PackageName.parse(text)
    assert from_escaped(name.escaped()) == name
    assert PackageName.parse(str(name)) == name


def test_missing_slash():
    with pytest.raises(PackageNameError, match="is not in the format `scope/name`"):
        PackageName.parse("acmewidget")


def test_scope_too_short():
    with pytest.raises(PackageNameError, match="is not within 3-32 characters long") as info:
        PackageName.parse("ab/widget")
    assert info.value.reason is ErrorReason.SCOPE


def test_scope_and_name_too_long():
    with pytest.raises(PackageNameError):
        PackageName.parse("a" * 33 + "/widget")
    with pytest.raises(PackageNameError) as info:
        PackageName.parse("acme/" + "b" * 33)
    assert info.value.reason is ErrorReason.NAME


def test_empty_name():
    with pytest.raises(PackageNameError, match="is not within 1-32 characters long"):
        PackageName.parse("acme/")


def test_only_digits():
    with pytest.raises(PackageNameError, match="contains only digits"):
        PackageName.parse("123/widget")
    with pytest.raises(PackageNameError, match="contains only digits"):
        PackageName.parse("acme/42")


def test_underscore_edges():
    with pytest.raises(PackageNameError, match="starts or ends with an underscore"):
        PackageName.parse("_acme/widget")
    with pytest.raises(PackageNameError, match="starts or ends with an underscore"):
        PackageName.parse("acme/widget_")


def test_invalid_characters():
    with pytest.raises(PackageNameError, match="contains characters outside a-z, 0-9, and _"):
        PackageName.parse("Acme/widget")
    with pytest.raises(PackageNameError, match="contains characters outside"):
        PackageName.parse("acme/wid-get")


def test_wally_parse_with_and_without_prefix():
    plain = WallyPackageName.parse("a-b/c-d")
    prefixed = WallyPackageName.parse("wally#a-b/c-d")
    assert plain == prefixed
    assert str(prefixed) == "wally#a-b/c-d"


def test_wally_escaped_round_trip():
    name = WallyPackageName.parse("some-scope/some-name")
    assert name.escaped().startswith("wally#")
    assert from_escaped(name.escaped()) == name


def test_wally_length_limits():
    assert WallyPackageName.parse("a" * 64 + "/b").scope == "a" * 64
    with pytest.raises(WallyPackageNameError, match="is not within 1-64 characters long"):
        WallyPackageName.parse("a" * 65 + "/b")
    with pytest.raises(WallyPackageNameError):
        WallyPackageName.parse("/b")


def test_wally_invalid_characters_and_format():
    with pytest.raises(WallyPackageNameError, match="contains characters outside a-z, 0-9, and -"):
        WallyPackageName.parse("a_b/c")
    with pytest.raises(WallyPackageNameError, match="is not in the format `scope/name`"):
        WallyPackageName.parse("wally#abc")


def test_parse_package_names_pesde():
    assert parse_package_names("acme/widget") == PackageName.parse("acme/widget")


def test_parse_package_names_wally_by_dash():
    assert parse_package_names("a-b/c") == WallyPackageName.parse("a-b/c")


def test_parse_package_names_wally_by_prefix():
    assert parse_package_names("wally#abc/def") == WallyPackageName("abc", "def")


def test_parse_package_names_invalid():
    with pytest.raises(PackageNamesError, match="invalid package name bad"):
        parse_package_names("bad")
    with pytest.raises(PackageNamesError):
        parse_package_names("has-dash/Bad")


def test_ordering():
    names = [PackageName.parse(s) for s in ["zed/a", "acme/b", "acme/a"]]
    ordered = sorted(names)
    assert [str(n) for n in ordered] == ["acme/a", "acme/b", "zed/a"]


def test_reason_display():
    with pytest.raises(PackageNameError) as scope_info:
        PackageName.parse("_acme/widget")
    assert str(scope_info.value.reason) == "scope"
    with pytest.raises(PackageNameError) as name_info:
        PackageName.parse("acme/_widget")
    assert str(name_info.value.reason) == "name"
import pytest

from pesde.target import RobloxPlaceKind, Target, TargetKind, TargetKindError

KIND_NAMES = ["roblox", "roblox_server", "lune", "luau"]


@pytest.mark.parametrize("kind", list(TargetKind))
def test_kind_round_trip(kind):
    assert TargetKind.parse(str(kind)) is kind


def test_kind_names():
    parsed = [TargetKind.parse(name) for name in KIND_NAMES]
    assert parsed == list(TargetKind)
    assert [str(TargetKind.parse(name)) for name in KIND_NAMES] == KIND_NAMES


def test_kind_parse_is_case_sensitive():
    with pytest.raises(TargetKindError, match="unknown target kind Roblox"):
        TargetKind.parse("Roblox")


def test_packages_folder_pinned():
    assert TargetKind.LUNE.packages_folder(TargetKind.ROBLOX) == "roblox_packages"


@pytest.mark.parametrize("dep", list(TargetKind))
def test_packages_folder_depends_only_on_dependency(dep):
    folders = {
        TargetKind.ROBLOX.packages_folder(dep),
        TargetKind.ROBLOX_SERVER.packages_folder(dep),
        TargetKind.LUNE.packages_folder(dep),
        TargetKind.LUAU.packages_folder(dep),
    }
    assert len(folders) == 1
    folder = folders.pop()
    assert folder.startswith(str(dep))
    assert folder.endswith("_packages")


def test_packages_folders_are_distinct():
    folders = {TargetKind.LUAU.packages_folder(dep) for dep in TargetKind}
    assert len(folders) == len(TargetKind)


def test_is_roblox():
    assert TargetKind.ROBLOX.is_roblox() is True
    assert TargetKind.ROBLOX_SERVER.is_roblox() is True
    assert TargetKind.LUNE.is_roblox() is False
    assert TargetKind.LUAU.is_roblox() is False


def test_to_place_kind():
    assert TargetKind.ROBLOX.to_place_kind() is RobloxPlaceKind.SHARED
    assert TargetKind.ROBLOX_SERVER.to_place_kind() is RobloxPlaceKind.SERVER
    assert TargetKind.LUNE.to_place_kind() is None
    assert TargetKind.LUAU.to_place_kind() is None


def test_place_kind_display():
    assert str(TargetKind.ROBLOX.to_place_kind()) == "shared"
    assert str(TargetKind.ROBLOX_SERVER.to_place_kind()) == "server"


def test_lune_target_from_dict():
    data = {
        "environment": "lune",
        "lib": "src/init.luau",
        "bin": "src/main.luau",
        "scripts": {"gen": "scripts/gen.luau"},
    }
    target = Target.from_dict(data)
    assert target.kind is TargetKind.LUNE
    assert target.lib == "src/init.luau"
    assert target.bin == "src/main.luau"
    assert target.scripts == {"gen": "scripts/gen.luau"}
    assert target.build_files is None
    assert str(target) == "lune"
    assert target.to_dict() == data


def test_roblox_target_defaults():
    target = Target.from_dict({"environment": "roblox"})
    assert target.build_files == frozenset()
    assert target.scripts is None
    assert target.bin is None
    assert target.to_dict() == {"environment": "roblox", "build_files": []}


def test_roblox_target_ignores_bin_field():
    target = Target.from_dict({"environment": "roblox_server", "bin": "main.luau"})
    assert target.bin is None
    assert target.kind is TargetKind.ROBLOX_SERVER


def test_roblox_round_trip():
    target = Target(TargetKind.ROBLOX, lib="init.luau", build_files=frozenset({"b", "a"}))
    again = Target.from_dict(target.to_dict())
    assert again == target
    assert target.to_dict()["build_files"] == ["a", "b"]


def test_luau_empty_scripts_not_serialized():
    target = Target(TargetKind.LUAU, lib="lib.luau")
    assert "scripts" not in target.to_dict()
    assert Target.from_dict(target.to_dict()) == target


def test_unknown_environment():
    with pytest.raises(TargetKindError):
        Target.from_dict({"environment": "node"})


def test_missing_environment():
    with pytest.raises(ValueError, match="environment"):
        Target.from_dict({"lib": "x.luau"})


def test_invalid_combination():
    with pytest.raises(ValueError):
        Target(TargetKind.ROBLOX, bin="main.luau")
    with pytest.raises(ValueError):
        Target(TargetKind.LUNE, build_files=frozenset({"src"}))
import pytest

from pesde.generator import (
    RobloxPlaceKindPathNotFound,
    generate_bin_linking_module,
    generate_lib_linking_module,
    generate_script_linking_module,
    get_bin_require_path,
    get_lib_require_path,
    get_script_require_path,
)
from pesde.manifest import Manifest
from pesde.names import PackageName
from pesde.target import RobloxPlaceKind, Target, TargetKind
from pesde.versions import Version

PLACE = "game.ReplicatedStorage.Packages"
BASE = "/proj/roblox_packages"
DEST = "/proj/roblox_packages/.pesde/acme+lib/1.0.0/lib"
CONTAINER = ".pesde/acme+lib/1.0.0/lib"


def _manifest(place=None):
    return Manifest(
        name=PackageName.parse("acme/game"),
        version=Version.parse("1.0.0"),
        target=Target(TargetKind.ROBLOX),
        place=place or {},
    )


def test_lib_linking_module_with_types():
    module = generate_lib_linking_module("p", ["export type A = module.A\n"])
    assert module == "local module = require(p)\nexport type A = module.A\nreturn module"


def test_lib_linking_module_without_types():
    assert generate_lib_linking_module("p", []) == "local module = require(p)\nreturn module"


def test_script_linking_module():
    assert generate_script_linking_module('"./x"') == 'return require("./x")'


def test_bin_linking_module_escapes_root():
    module = generate_bin_linking_module('/a"b', "x")
    assert module == '_G.PESDE_ROOT = "/a\\"b"\nreturn require(x)'


def test_bin_require_path_inside_base():
    path = get_bin_require_path(
        "/proj/lune_packages", "bin.luau", "/proj/lune_packages/.pesde/acme+tool/1.0.0/tool"
    )
    assert path == '"./.pesde/acme+tool/1.0.0/tool/bin"'


def test_bin_require_path_strips_lua_extension():
    path = get_bin_require_path("/p", "main.lua", "/p/x")
    assert path.startswith('"./')
    assert path.endswith('"')
    assert ".lua" not in path


def test_script_require_path_climbs_with_parents():
    path = get_script_require_path(
        "/proj/.pesde/alias", "scripts/gen.luau", "/proj/lune_packages/.pesde/x"
    )
    assert path.startswith('"./../../lune_packages/')
    assert path.count("..") == 2
    assert ".luau" not in path


def test_relative_destination_with_absolute_base_fails():
    with pytest.raises(ValueError):
        get_bin_require_path("/abs", "b.luau", "rel")


def test_lune_lib_path_matches_script_path():
    lib = get_lib_require_path(
        TargetKind.LUNE, "/p/lune_packages", "src/lib.luau", "/p/lune_packages/.pesde/a",
        True, "/p/lune_packages", ".pesde/a", _manifest(),
    )
    script = get_script_require_path("/p/lune_packages", "src/lib.luau", "/p/lune_packages/.pesde/a")
    assert lib == script


def test_roblox_inside_root_uses_script_parent():
    path = get_lib_require_path(
        TargetKind.ROBLOX, BASE, "src/init.luau", DEST, True, BASE, CONTAINER, _manifest()
    )
    assert path == 'script.Parent[".pesde"]["acme+lib"]["1.0.0"]["lib"]["src"]'


def test_roblox_old_structure_skips_lib_file():
    path = get_lib_require_path(
        TargetKind.ROBLOX, BASE, "src/init.luau", DEST, False, BASE, CONTAINER, _manifest()
    )
    assert path.startswith("script.Parent")
    assert '"src"' not in path


def test_roblox_outside_root_uses_place():
    inside = get_lib_require_path(
        TargetKind.ROBLOX, BASE, "src/mod.luau", DEST, True, BASE, CONTAINER, _manifest()
    )
    outside = get_lib_require_path(
        TargetKind.ROBLOX, BASE, "src/mod.luau", DEST, True, "/elsewhere", CONTAINER,
        _manifest({RobloxPlaceKind.SHARED: PLACE}),
    )
    assert outside.startswith(PLACE)
    assert outside.removeprefix(PLACE) == inside.removeprefix("script.Parent")


def test_roblox_parent_components_become_parent_accesses():
    path = get_lib_require_path(
        TargetKind.ROBLOX, "/proj/a/b", "init.lua", "/proj/c", True, "/proj", "c", _manifest()
    )
    assert path.startswith("script.Parent.Parent.Parent")
    assert "init" not in path


def test_roblox_missing_place_raises():
    with pytest.raises(RobloxPlaceKindPathNotFound) as info:
        get_lib_require_path(
            TargetKind.ROBLOX, BASE, "src/init.luau", DEST, True, "/elsewhere", CONTAINER,
            _manifest(),
        )
    assert info.value.place_kind is RobloxPlaceKind.SHARED
    assert "shared" in str(info.value)


def test_roblox_server_uses_server_place():
    manifest = _manifest({RobloxPlaceKind.SERVER: PLACE})
    path = get_lib_require_path(
        TargetKind.ROBLOX_SERVER, BASE, "src/init.luau", DEST, True, "/elsewhere", CONTAINER,
        manifest,
    )
    assert path.startswith(PLACE)
    with pytest.raises(RobloxPlaceKindPathNotFound):
        get_lib_require_path(
            TargetKind.ROBLOX_SERVER, BASE, "src/init.luau", DEST, True, "/elsewhere",
            CONTAINER, _manifest({RobloxPlaceKind.SHARED: PLACE}),
        )
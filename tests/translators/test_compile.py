# SPDX-License-Identifier: MIT
"""Tests for fbbridge.translators.compile."""

from __future__ import annotations

import pytest

from fbbridge.core.action import ActionType, BuildAction, FileItem
from fbbridge.core.errors import TranslationError
from fbbridge.core.node import NodeKind
from fbbridge.toolchains.build_type import BuildType
from fbbridge.translators.compile import output_extension, translate_compile
from fbbridge.translators.context import TranslationContext

CL = "C:/Program Files/Microsoft Visual Studio/VC/bin/cl.exe"
RC = "C:/Program Files (x86)/Windows Kits/10/bin/x64/rc.exe"
ORBIS_CLANG = "C:/sdk/host_tools/bin/orbis-clang.exe"


def compile_action(arguments: str, command_path: str = CL, **kwargs) -> BuildAction:
    return BuildAction(ActionType.COMPILE, command_path, arguments, **kwargs)


def translate_one(
    action: BuildAction, build_type: BuildType = BuildType.WINDOWS, **kwargs
):
    context = TranslationContext(actions=[action], build_type=build_type, **kwargs)
    nodes = translate_compile(action, 0, context)
    assert len(nodes) == 1
    return nodes[0]


class TestOutputExtension:
    def test_stem_based_name(self) -> None:
        assert output_extension("src/Foo.cpp", "obj/Foo.cpp.obj", ".obj") == ".cpp.obj"

    def test_windows_paths(self) -> None:
        assert output_extension(r"D:\src\a.c", r"D:\obj\a.c.obj", ".obj") == ".c.obj"

    def test_unrelated_name_uses_default(self) -> None:
        assert output_extension("src/Foo.cpp", "obj/Module.obj", ".cpp.obj") == ".cpp.obj"


class TestTranslateMsvcCompile:
    def test_plain_compile(self) -> None:
        node = translate_one(
            compile_action(r'/c /Fo"D:\Build\obj\Foo.cpp.obj" "D:\Src\Foo.cpp"')
        )

        assert node.kind is NodeKind.OBJECT_LIST
        assert node.name == "Action_0"
        assert node.properties == {
            "Compiler": "MSVCCompiler",
            "CompilerInputFiles": r"D:\Src\Foo.cpp",
            "CompilerOutputPath": r"D:\Build\obj",
            "CompilerOptions": '/c  /Fo"%2" "%1" ',
            "CompilerOutputExtension": ".cpp.obj",
        }
        assert node.dependencies == []

    def test_pch_create(self) -> None:
        """Test that /Yc produces PCH options alongside the object options."""
        node = translate_one(
            compile_action(
                r'/c /Yc"PCH.h" /Fp"D:\obj\PCH.pch" /Fo"D:\obj\PCH.cpp.obj" '
                r'"D:\src\PCH.cpp"'
            )
        )

        props = node.properties
        assert props["CompilerOptions"] == (
            r'"%1" /Fo"%2" /Fp"D:\obj\PCH.pch" /Yu"PCH.h" /c  '
        )
        assert props["PCHOptions"] == (
            r'"%1" /Fp"%2" /Yc"PCH.h" /c  /Fo"D:\obj\PCH.cpp.obj"'
        )
        assert props["PCHInputFile"] == r"D:\src\PCH.cpp"
        assert props["PCHOutputFile"] == r"D:\obj\PCH.pch"
        assert props["CompilerOutputExtension"] == ".cpp.obj"

    def test_pch_use(self) -> None:
        """Test that /Yu force-includes the header next to the .pch."""
        node = translate_one(
            compile_action(
                r'/c /Yu"PCH.h" /Fp"D:\obj\PCH.pch" /Fo"D:\obj\a.cpp.obj" '
                r'"D:\src\a.cpp"'
            )
        )
        assert node.properties["CompilerOptions"] == (
            r'"%1" /Fo"%2" /Fp"D:\obj\PCH.pch" /Yu"PCH.h" /FI"D:\obj\PCH" /c  '
        )
        assert "PCHOptions" not in node.properties

    def test_pch_use_follows_pch_create(self) -> None:
        """Test that a user of the PCH names the file its creator declares."""
        pch = r"D:\obj\PCH.pch"
        actions = [
            compile_action(
                rf'/c /Yc"PCH.h" /Fp"{pch}" /Fo"D:\obj\PCH.cpp.obj" "D:\src\PCH.cpp"',
                produced_items=(FileItem(pch, 0), FileItem(r"D:\obj\PCH.cpp.obj", 0)),
            ),
            compile_action(
                rf'/c /Yu"PCH.h" /Fp"{pch}" /Fo"D:\obj\a.cpp.obj" "D:\src\a.cpp"',
                prerequisite_items=(FileItem(r"D:\src\a.cpp"), FileItem(pch, 0)),
                produced_items=(FileItem(r"D:\obj\a.cpp.obj", 1),),
            ),
        ]
        context = TranslationContext(actions=actions)

        (create,) = translate_compile(actions[0], 0, context)
        context.emitted.add(create.name)
        (use,) = translate_compile(actions[1], 1, context)

        declared = create.properties["PCHOutputFile"]
        assert f'/Fp"{declared}"' in use.properties["CompilerOptions"]
        assert use.dependencies == [create.name]

    def test_resource_compiler(self) -> None:
        node = translate_one(
            compile_action(r'/nologo /fo"D:\obj\App.res" "D:\src\App.rc"', RC)
        )
        assert node.properties["Compiler"] == "ResourceCompiler"
        assert node.properties["CompilerOptions"] == '/nologo  /fo"%2" "%1" '
        assert node.properties["CompilerOutputExtension"] == ".res"

    def test_environment_variables_substituted(self) -> None:
        node = translate_one(
            compile_action(r'/I$(DXSDK_DIR)/Include /Fo"D:\obj\a.obj" "D:\src\a.cpp"')
        )
        assert "/I$DXSDK_DIR$/Include" in node.properties["CompilerOptions"]


class TestTranslateClangCompile:
    def test_orbis_compile(self) -> None:
        node = translate_one(
            compile_action('-c -o "D:/obj/a.cpp.o" "D:/src/a.cpp"', ORBIS_CLANG),
            BuildType.PS4,
        )
        assert node.properties["Compiler"] == "OrbisCompiler"
        assert node.properties["CompilerOutputPath"] == "D:/obj"
        assert node.properties["CompilerOptions"] == '-c  -o "%2" "%1" '
        assert node.properties["CompilerOutputExtension"] == ".cpp.o"


class TestDistribution:
    def test_local_only_action(self) -> None:
        node = translate_one(
            compile_action(
                r'/c /Fo"D:\obj\a.obj" "D:\src\a.cpp"', can_execute_remotely=False
            )
        )
        assert node.properties["AllowDistribution"] is False

    def test_force_local_module(self) -> None:
        node = translate_one(
            compile_action(r'/c /Fo"D:\obj\a.obj" "D:\src\ThirdParty\a.cpp"'),
            force_local_modules=("ThirdParty",),
        )
        assert node.properties["AllowDistribution"] is False

    def test_distributable_has_no_flag(self) -> None:
        node = translate_one(compile_action(r'/c /Fo"D:\obj\a.obj" "D:\src\a.cpp"'))
        assert "AllowDistribution" not in node.properties


class TestDependencies:
    def make_actions(self) -> list[BuildAction]:
        pch = compile_action(
            r'/c /Yc"PCH.h" /Fp"D:\obj\PCH.pch" /Fo"D:\obj\PCH.obj" "D:\src\PCH.cpp"',
            produced_items=(FileItem(r"D:\obj\PCH.pch", 0),),
        )
        user = compile_action(
            r'/c /Yu"PCH.h" /Fp"D:\obj\PCH.pch" /Fo"D:\obj\a.obj" "D:\src\a.cpp"',
            prerequisite_items=(FileItem(r"D:\obj\PCH.pch", 0),),
        )
        return [pch, user]

    def test_emitted_producer_is_dependency(self) -> None:
        actions = self.make_actions()
        context = TranslationContext(actions=actions, emitted={"Action_0"})
        node = translate_compile(actions[1], 1, context)[0]
        assert node.dependencies == ["Action_0"]

    def test_skipped_producer_is_dropped(self, caplog) -> None:
        """Test that a dependency on an untranslated action is dropped."""
        actions = self.make_actions()
        context = TranslationContext(actions=actions)
        node = translate_compile(actions[1], 1, context)[0]
        assert node.dependencies == []
        assert "was not translated" in caplog.text


class TestErrors:
    def test_missing_object_file(self) -> None:
        with pytest.raises(TranslationError, match="no output object file"):
            translate_one(compile_action(r'/c "D:\src\a.cpp"'))

    def test_object_file_without_directory(self) -> None:
        with pytest.raises(TranslationError, match="no intermediate path"):
            translate_one(compile_action(r'/c /FoFoo.obj "D:\src\a.cpp"'))

    def test_missing_input_file(self) -> None:
        with pytest.raises(TranslationError, match="no input file"):
            translate_one(compile_action(r'/c /Fo"D:\obj\a.obj"'))

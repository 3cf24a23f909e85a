"""
End-to-end tests for the `kdltemplate` command line.
"""

import pytest
from kdltemplate.__main__ import main


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")


class TestCli:
    """main(argv) with files on disk"""

    def test_expand_single_file(self, tmp_path, capsys):
        page = tmp_path / "page.kdl"
        page.write_text('t "x" { T "x" }\nRoot { t 1 }\n')
        assert main([str(page)]) == 0
        assert capsys.readouterr().out == "Root {\n    T 1\n}\n"

    def test_imports(self, tmp_path, capsys):
        lib = tmp_path / "lib.kdl"
        lib.write_text('t { T }\nexport "t"\n')
        page = tmp_path / "page.kdl"
        page.write_text('Root { "lib/t" }\n')
        assert main([str(page), str(lib)]) == 0
        assert capsys.readouterr().out == "Root {\n    T\n}\n"

    def test_sexpr_format(self, tmp_path, capsys):
        page = tmp_path / "page.kdl"
        page.write_text("t { T }\nt\n")
        assert main([str(page), "--format", "sexpr"]) == 0
        assert capsys.readouterr().out.strip() == '(node "T")'

    def test_expansion_error(self, tmp_path, capsys):
        page = tmp_path / "page.kdl"
        page.write_text('Root { "lib/t" }\n')
        assert main([str(page)]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "error[E" in captured.err
        assert "aborting due to 1 previous error" in captured.err

    def test_syntax_error(self, tmp_path, capsys):
        page = tmp_path / "page.kdl"
        page.write_text("Root {\n")
        assert main([str(page)]) == 1
        assert capsys.readouterr().err

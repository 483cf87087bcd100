"""Tests for the command-line interface."""

import io

import pytest

from xq import __version__
from xq.cli.main import build_options, create_argument_parser, load_config, main


class TTYStringIO(io.StringIO):
    """StringIO that claims to be a terminal."""

    def isatty(self):
        return True


@pytest.fixture(autouse=True)
def no_pager(monkeypatch):
    monkeypatch.delenv("PAGER", raising=False)


@pytest.fixture
def config_path(tmp_path):
    """Path to a config file that does not exist yet."""
    return tmp_path / ".xq"


def run_xq(args, config_path, stdin_text=""):
    out = io.StringIO()
    code = main(["--config", str(config_path), *args], stdin=io.StringIO(stdin_text), stdout=out)
    return code, out.getvalue()


class TestArgumentParser:
    """Test the argument parser and option assembly."""

    def test_defaults(self, config_path):
        """Test default options."""
        args = create_argument_parser().parse_args(["--config", str(config_path)])
        options = build_options(args, load_config(args))
        assert options.indent == "  "
        assert options.depth == -1
        assert not options.force_html
        assert options.xpath is None

    def test_extract_sets_single_node(self, config_path):
        """Test that -e selects a single node."""
        args = create_argument_parser().parse_args(["--config", str(config_path), "-e", "//a"])
        options = build_options(args, load_config(args))
        assert options.xpath == "//a"
        assert options.single_node

    def test_config_file_defaults(self, config_path):
        """Test that the config file supplies defaults."""
        config_path.write_text("indent=4\nhtml=true\nnode=1\n", encoding="utf-8")
        args = create_argument_parser().parse_args(["--config", str(config_path)])
        config = load_config(args)
        assert (config.indent, config.html, config.node) == (4, True, True)

    def test_flags_override_config(self, config_path):
        """Test that flags win over the config file."""
        config_path.write_text("indent=4\ntab=true\n", encoding="utf-8")
        args = create_argument_parser().parse_args(["--config", str(config_path), "--indent", "1"])
        assert load_config(args).indent == 1

    def test_no_color_flag_overrides_config_color(self, config_path):
        """Test that --no-color wins over color=true in the config file."""
        config_path.write_text("color=true\n", encoding="utf-8")
        args = create_argument_parser().parse_args(["--config", str(config_path), "--no-color"])
        config = load_config(args)
        assert (config.color, config.no_color) == (False, True)

    def test_color_flag_overrides_config_no_color(self, config_path):
        """Test that -c wins over no_color=true in the config file."""
        config_path.write_text("no_color=true\n", encoding="utf-8")
        args = create_argument_parser().parse_args(["--config", str(config_path), "-c"])
        config = load_config(args)
        assert (config.color, config.no_color) == (True, False)

    def test_version(self, capsys):
        """Test the version flag."""
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out


class TestMain:
    """Test end-to-end runs."""

    def test_format_stdin(self, config_path):
        """Test formatting standard input."""
        assert run_xq([], config_path, "<a><b/></a>") == (0, "<a>\n  <b/>\n</a>\n")

    def test_indent_and_tab(self, config_path):
        """Test indentation flags."""
        assert run_xq(["--indent", "4"], config_path, "<a><b/></a>")[1] == "<a>\n    <b/>\n</a>\n"
        assert run_xq(["--tab"], config_path, "<a><b/></a>")[1] == "<a>\n\t<b/>\n</a>\n"

    def test_config_indent(self, config_path):
        """Test indentation from the config file."""
        config_path.write_text("indent=0\n", encoding="utf-8")
        assert run_xq([], config_path, "<a>\n <b/>\n</a>")[1] == "<a><b/></a>\n"

    def test_xpath(self, config_path):
        """Test XPath extraction."""
        assert run_xq(["-x", "//i"], config_path, "<r><i>1</i><i>2</i></r>") == (0, "1\n2\n")

    def test_extract(self, config_path):
        """Test single node extraction."""
        assert run_xq(["-e", "//i"], config_path, "<r><i>1</i><i>2</i></r>")[1] == "1\n"

    def test_css_attribute(self, config_path):
        """Test CSS extraction of attributes."""
        source = '<p><a href="/1">1</a><a href="/2">2</a></p>'
        assert run_xq(["-q", "a", "-a", "href"], config_path, source)[1] == "/1\n/2\n"

    def test_css_node(self, config_path):
        """Test CSS extraction of markup."""
        source = '<ul><li class="a">x</li></ul>'
        assert run_xq(["-q", "li", "-n"], config_path, source)[1] == '<li class="a">x</li>\n'

    def test_json(self, config_path):
        """Test conversion to JSON."""
        assert run_xq(["-j", "--compact"], config_path, "<a><b>1</b></a>")[1] == '{"a":{"b":"1"}}\n'

    def test_json_depth(self, config_path):
        """Test the depth limit."""
        source = "<a><b><c>1</c></b></a>"
        assert run_xq(["-j", "--compact", "-d", "1"], config_path, source)[1] == '{"a":{"b":"1"}}\n'

    def test_forced_color(self, config_path):
        """Test that -c colors output written to a non-terminal."""
        _, output = run_xq(["-c"], config_path, "<a/>")
        assert output == "\x1b[33m<a\x1b[0m\x1b[33m/>\x1b[0m\n"

    def test_no_color_with_colored_config(self, tmp_path, config_path):
        """Test uncolored output when the config file forces colors."""
        config_path.write_text("color=true\n", encoding="utf-8")
        path = tmp_path / "doc.xml"
        path.write_text("<a><b/></a>", encoding="utf-8")
        assert run_xq(["--no-color", str(path)], config_path) == (0, "<a>\n  <b/>\n</a>\n")

    def test_files_in_order(self, tmp_path, config_path):
        """Test that several files are printed in order."""
        first = tmp_path / "1.xml"
        first.write_text("<one/>", encoding="utf-8")
        second = tmp_path / "2.json"
        second.write_text("[]", encoding="utf-8")
        assert run_xq([str(first), str(second)], config_path) == (0, "<one/>\n[]\n")

    def test_in_place(self, tmp_path, config_path):
        """Test rewriting files in place."""
        path = tmp_path / "doc.xml"
        path.write_text("<a><b/></a>", encoding="utf-8")
        code, output = run_xq(["-i", "-c", str(path)], config_path)
        assert (code, output) == (0, "")
        assert path.read_text(encoding="utf-8") == "<a>\n  <b/>\n</a>\n"

    def test_tty_stdin_prints_help(self, config_path):
        """Test that an interactive terminal gets usage help."""
        out = io.StringIO()
        assert main(["--config", str(config_path)], stdin=TTYStringIO(), stdout=out) == 0
        assert out.getvalue().startswith("usage: xq")


class TestErrors:
    """Test error reporting and exit codes."""

    def test_invalid_indent(self, config_path, capsys):
        """Test the indentation range check."""
        assert run_xq(["--indent", "9"], config_path, "<a/>")[0] == 1
        assert capsys.readouterr().err == "Error: indent should be between 0-8 spaces\n"

    def test_attribute_without_query(self, config_path, capsys):
        """Test that -a needs -q."""
        assert run_xq(["-a", "href"], config_path, "<a/>")[0] == 1
        assert capsys.readouterr().err == (
            "Error: query option (-q) is missed for attribute selection\n"
        )

    def test_in_place_without_files(self, config_path, capsys):
        """Test that in-place mode needs files."""
        assert run_xq(["-i"], config_path, "<a/>")[0] == 1
        assert "in-place mode requires at least one file" in capsys.readouterr().err

    def test_malformed_json(self, config_path, capsys):
        """Test that parse errors exit with status 1."""
        assert run_xq([], config_path, '{"a": }')[0] == 1
        assert capsys.readouterr().err.startswith("Error: ")

    def test_invalid_xpath(self, config_path, capsys):
        """Test that query errors exit with status 1."""
        assert run_xq(["-x", "//["], config_path, "<a/>")[0] == 1
        assert "XPath error" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, config_path, capsys):
        """Test a file that cannot be opened."""
        assert run_xq([str(tmp_path / "missing.xml")], config_path)[0] == 1
        assert capsys.readouterr().err.startswith("Error: ")

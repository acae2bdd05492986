import textwrap
from datetime import datetime
from pathlib import Path

import pytest
from lxml import etree

from testsummary.app.errors import TemplateLoadError, TransformError
from testsummary.app.merger import create_summary_document
from testsummary.app.params import StaticHostInfo, build_parameters
from testsummary.app.transform import (
    is_passthrough,
    load_template,
    render,
    run_content_stage,
    run_i18n_stage,
    transform,
)

CONTENT_XSL = """
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:output method="xml" encoding="UTF-8"/>
  <xsl:param name="open.description"/>
  <xsl:param name="sys.username"/>
  <xsl:template match="/testsummary">
    <page open="{$open.description}" user="{$sys.username}" count="{count(*)}" created="{@created}">
      <key>greeting</key>
    </page>
  </xsl:template>
</xsl:stylesheet>
"""

I18N_XSL = """
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:output method="xml" encoding="UTF-8"/>
  <xsl:param name="lang" select="'en'"/>
  <xsl:variable name="strings" select="document('strings.xml')/strings"/>
  <xsl:template match="/page">
    <html lang="{$lang}" open="{@open}" user="{@user}" count="{@count}">
      <xsl:value-of select="$strings/s[@key = current()/key][@lang = $lang]"/>
    </html>
  </xsl:template>
</xsl:stylesheet>
"""

STRINGS_XML = """
<strings>
  <s key="greeting" lang="en">Hello</s>
  <s key="greeting" lang="fr">Bonjour</s>
</strings>
"""

CSS_XSL = """
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:output method="text" encoding="UTF-8"/>
  <xsl:template match="/">body { color: black; } /* <xsl:value-of select="count(/testsummary/*)"/> */</xsl:template>
</xsl:stylesheet>
"""

FAILING_XSL = """
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:template match="/">
    <xsl:message terminate="yes">boom</xsl:message>
  </xsl:template>
</xsl:stylesheet>
"""

HOST = StaticHostInfo(os="Linux", runtime="CPython 3.12", machine="ci", user="builder")
MOMENT = datetime(2024, 5, 6, 7, 8, 9)


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
    return path


@pytest.fixture
def templates(tmp_path):
    xsl_dir = tmp_path / "xsl"
    write(xsl_dir / "strings.xml", STRINGS_XML)
    return {
        "content": write(xsl_dir / "content.xsl", CONTENT_XSL),
        "i18n": write(xsl_dir / "i18n.xsl", I18N_XSL),
        "css": write(xsl_dir / "css.xsl", CSS_XSL),
        "failing": write(xsl_dir / "failing.xsl", FAILING_XSL),
    }


@pytest.fixture
def summary(tmp_path):
    f1 = write(tmp_path / "in" / "a.xml", "<results><case/></results>")
    f2 = write(tmp_path / "in" / "b.xml", "<results><case/><case/></results>")
    return create_summary_document([f1, f2], now=MOMENT)


def test_two_stages_localize_content(templates, summary):
    params = build_parameters(True, HOST)
    data = render(summary, params, templates["content"], templates["i18n"], "fr", "index.htm")
    html = etree.fromstring(data)
    assert html.tag == "html"
    assert html.get("lang") == "fr"
    assert html.get("open") == "yes"
    assert html.get("user") == "builder"
    assert html.get("count") == "2"
    assert html.text.strip() == "Bonjour"


def test_parameter_values_are_passed_as_strings(templates, summary):
    host = StaticHostInfo(user="o'brien \"quoted\"")
    content = run_content_stage(summary, build_parameters(False, host), templates["content"])
    page = etree.fromstring(content.data)
    assert page.get("user") == "o'brien \"quoted\""
    assert page.get("open") == "no"


def test_content_stage_keeps_tree_for_i18n(templates, summary):
    content = run_content_stage(summary, build_parameters(False, HOST), templates["content"])
    assert content.tree is not None
    assert content.tree.getroot().tag == "page"
    data = run_i18n_stage(content, templates["i18n"], "en")
    assert etree.fromstring(data).text.strip() == "Hello"


@pytest.mark.parametrize("filename", ["report.css", "REPORT.CSS"])
def test_stylesheet_output_skips_localization(templates, summary, filename):
    params = build_parameters(False, HOST)
    content = run_content_stage(summary, params, templates["css"])
    data = render(summary, params, templates["css"], templates["i18n"], "fr", filename)
    assert data == content.data
    assert data.startswith(b"body { color: black; }")


def test_is_passthrough():
    assert is_passthrough("style.css")
    assert is_passthrough(Path("out") / "Style.Css")
    assert not is_passthrough("index.htm")
    assert not is_passthrough("css")


def test_text_content_cannot_be_localized(templates, summary):
    with pytest.raises(TransformError) as exc:
        render(summary, {}, templates["css"], templates["i18n"], "en", "index.htm")
    assert exc.value.stage == "i18n"


def test_output_is_deterministic(templates, summary):
    params = build_parameters(True, HOST)
    first = render(summary, params, templates["content"], templates["i18n"], "en", "index.htm")
    second = render(summary, params, templates["content"], templates["i18n"], "en", "index.htm")
    assert first == second


def test_transform_writes_into_missing_directory(templates, summary, tmp_path):
    out = tmp_path / "reports" / "nested" / "index.htm"
    written = transform(summary, build_parameters(False, HOST), templates["content"], templates["i18n"], "en", out)
    assert written == out
    assert etree.fromstring(out.read_bytes()).text.strip() == "Hello"


def test_intermediate_output_is_kept_when_requested(templates, summary, tmp_path):
    params = build_parameters(False, HOST)
    keep = tmp_path / "intermediate"
    render(summary, params, templates["content"], templates["i18n"], "en", "index.htm", intermediate_directory=keep)
    kept = list(keep.glob("stage1-*.xml"))
    assert len(kept) == 1
    assert kept[0].read_bytes() == run_content_stage(summary, params, templates["content"]).data


def test_missing_template_raises_template_load_error(tmp_path):
    with pytest.raises(TemplateLoadError) as exc:
        load_template(tmp_path / "nope.xsl")
    assert exc.value.path.endswith("nope.xsl")


def test_malformed_template_raises_template_load_error(tmp_path):
    bad = write(tmp_path / "bad.xsl", "<xsl:stylesheet version='1.0' xmlns:xsl='http://www.w3.org/1999/XSL/Transform'>")
    with pytest.raises(TemplateLoadError):
        load_template(bad)


def test_non_stylesheet_raises_template_load_error(tmp_path):
    not_xsl = write(tmp_path / "plain.xsl", "<plain/>")
    with pytest.raises(TemplateLoadError):
        load_template(not_xsl)


def test_runtime_failure_raises_transform_error(templates, summary):
    with pytest.raises(TransformError) as exc:
        run_content_stage(summary, {}, templates["failing"])
    assert exc.value.stage == "content"
    assert exc.value.template == str(templates["failing"])


def test_runtime_failure_in_localization_names_i18n_stage(templates, summary):
    content = run_content_stage(summary, build_parameters(False, HOST), templates["content"])
    with pytest.raises(TransformError) as exc:
        run_i18n_stage(content, templates["failing"], "en")
    assert exc.value.stage == "i18n"
    assert exc.value.template == str(templates["failing"])

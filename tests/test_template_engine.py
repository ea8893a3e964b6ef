from appdoc_ops.template_engine import TemplateEngine


def test_variables_are_escaped_by_default():
    out = TemplateEngine().render("<p>{{name}}</p>", {"name": "<b>A & B</b>"})
    assert out == "<p>&lt;b&gt;A &amp; B&lt;/b&gt;</p>"


def test_triple_braces_render_raw():
    out = TemplateEngine().render("{{{html}}}", {"html": "<br>"})
    assert out == "<br>"


def test_escape_can_be_disabled():
    out = TemplateEngine(escape=False).render("{{v}}", {"v": "<i>"})
    assert out == "<i>"


def test_nested_access_and_missing_values():
    engine = TemplateEngine()
    data = {"a": {"b": [{"c": "deep"}]}}
    assert engine.render("{{a.b[0].c}}", data) == "deep"
    assert engine.render("[{{a.missing}}]", data) == "[]"
    assert engine.render("[{{a.b[5].c}}]", data) == "[]"


def test_each_with_index_and_this():
    engine = TemplateEngine()
    out = engine.render("{{#each items}}{{@index}}={{this}};{{/each}}", {"items": ["x", "y"]})
    assert out == "0=x;1=y;"


def test_nested_each_over_dicts():
    engine = TemplateEngine()
    data = {
        "sections": [
            {"name": "S1", "fields": [{"label": "A"}, {"label": "B"}]},
            {"name": "S2", "fields": []},
        ]
    }
    template = "{{#each sections}}[{{name}}:{{#each fields}}{{label}}{{/each}}]{{/each}}"
    assert engine.render(template, data) == "[S1:AB][S2:]"


def test_if_else_and_unless():
    engine = TemplateEngine()
    template = "{{#if link}}<a>{{value}}</a>{{else}}<span>{{value}}</span>{{/if}}"
    assert engine.render(template, {"link": "u", "value": "v"}) == "<a>v</a>"
    assert engine.render(template, {"link": None, "value": "v"}) == "<span>v</span>"
    assert engine.render("{{#unless ok}}no{{/unless}}", {"ok": False}) == "no"
    assert engine.render("{{#unless ok}}no{{/unless}}", {"ok": True}) == ""


def test_else_inside_nested_if_belongs_to_inner_block():
    engine = TemplateEngine()
    template = "{{#if a}}{{#if b}}AB{{else}}A{{/if}}{{else}}none{{/if}}"
    assert engine.render(template, {"a": True, "b": False}) == "A"
    assert engine.render(template, {"a": False, "b": True}) == "none"


def test_eq_condition():
    engine = TemplateEngine()
    template = '{{#if (eq mode "reduced")}}lite{{else}}full{{/if}}'
    assert engine.render(template, {"mode": "reduced"}) == "lite"
    assert engine.render(template, {"mode": "full"}) == "full"


def test_stray_closing_tag_is_dropped():
    assert TemplateEngine().render("a{{/if}}b", {}) == "ab"


def test_unless_with_else():
    engine = TemplateEngine()
    template = "{{#unless checklist}}none{{else}}{{#each checklist}}{{this}}{{/each}}{{/unless}}"
    assert engine.render(template, {"checklist": []}) == "none"
    assert engine.render(template, {"checklist": ["a", "b"]}) == "ab"

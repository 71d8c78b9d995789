from poolbreaker.core.pipeline import PipelineConfig
from poolbreaker.core.stringpool import CallSiteRewriter, normalize_booleans, strip_version_marker
from poolbreaker.core.syntax import parse_program
from poolbreaker.core.techniques import StringArrayTechnique


def run(code, **overrides):
    config = PipelineConfig.from_preset('balanced', **overrides)
    return StringArrayTechnique(config).process(code)


def test_call_sites_become_literals(simple_pool):
    out = run(simple_pool)
    assert 'console.log("a", "f", d(100));' in out


def test_everything_else_is_untouched(simple_pool):
    out = run(simple_pool)
    assert out.splitlines()[:2] == simple_pool.splitlines()[:2]


def test_rewrite_is_idempotent(simple_pool):
    once = run(simple_pool)
    assert run(once) == once


def test_unparseable_input_is_returned_verbatim():
    code = "var p = ['a', 'b', 'c', 'd', 'e', 'f']; function d(i) { return p[i]; } d(1"
    assert run(code) == code


def test_code_without_pools_is_returned_verbatim():
    code = "function add(a, b) { return a + b; }\nadd(1, 2);\n"
    technique = StringArrayTechnique()
    assert not technique.detect(code)
    assert technique.process(code) == code


def test_accessor_shape_with_self_rebinding_reader(accessor_pool):
    out = run(accessor_pool)
    assert 'console.log("hello", "world");' in out


def test_keys_are_passed_verbatim(keyed_pool):
    out = run(keyed_pool)
    assert 'console.log("betaX", "gamma!", "alpha0x1");' in out


def test_rotation_runs_exactly_once(rotated_pool):
    out = run(rotated_pool)
    assert 'console.log("c");' in out
    assert '(function (arr, n) { while (n--) { arr.push(arr.shift()); } })(p, 2);' in out


def test_call_sites_inside_prelude_are_kept():
    code = (
        "var p = ['a', 'b', 'c', 'd', 'e', 'f'];\n"
        "function d(i) { return p[i]; }\n"
        "var check = d(1) + p.length;\n"
        "console.log(d(1));\n"
    )
    out = run(code)
    assert 'var check = d(1) + p.length;' in out
    assert 'console.log("b");' in out


def test_nested_calls_resolve_innermost_first():
    code = (
        "var p = ['1', 'b', 'c', 'd', 'e', 'f'];\n"
        "function d(i) { return p[i]; }\n"
        "console.log(d(d(0)));\n"
    )
    assert 'console.log("b");' in run(code)


def test_unresolvable_arguments_are_skipped():
    code = (
        "var p = ['a', 'b', 'c', 'd', 'e', 'f'];\n"
        "function d(i) { return p[i]; }\n"
        "console.log(d(x), d(1, 2, 3), d(2));\n"
    )
    assert 'console.log(d(x), d(1, 2, 3), "c");' in run(code)


def test_one_parameter_decoder_drops_pure_unknown_key():
    code = (
        "var p = ['a', 'b', 'c', 'd', 'e', 'f'];\n"
        "function d(i) { return p[i]; }\n"
        "console.log(d(3, key), d(4, sideEffect()));\n"
    )
    assert 'console.log("d", d(4, sideEffect()));' in run(code)


def test_throwing_call_site_is_skipped_alone():
    code = (
        "var p = ['a', 'b', 'c', 'd', 'e', 'f'];\n"
        "function d(i) { if (i === 5) { throw new Error('no'); } return p[i]; }\n"
        "console.log(d(5), d(0));\n"
    )
    assert 'console.log(d(5), "a");' in run(code)


def test_timeout_leaves_file_untouched():
    code = (
        "var p = ['a', 'b', 'c', 'd', 'e', 'f'];\n"
        "function d(i) { if (i === 3) { while (true) {} } return p[i]; }\n"
        "console.log(d(0), d(3));\n"
    )
    assert run(code, sandbox_timeout_secs=0.2) == code


def test_booleans_are_normalized_after_a_rewrite(simple_pool):
    code = simple_pool + "function t(){return!![];}\nvar off = ![];\n"
    out = run(code)
    assert 'function t(){return true;}' in out
    assert 'var off = false;' in out


def test_boolean_normalization_can_be_disabled(simple_pool):
    code = simple_pool + "var on = !![];\n"
    assert 'var on = !![];' in run(code, normalize_booleans=False)


def test_version_marker_stripping(simple_pool):
    code = "var version_ = 'jsjiami.com.v7';\n" + simple_pool
    assert 'jsjiami' in run(code)
    assert 'jsjiami' not in run(code, strip_version_marker=True)


def test_shared_sandbox_mode(simple_pool):
    assert 'console.log("a", "f", d(100));' in run(simple_pool, isolate_probes=False)


def test_rewriter_counts_replacements():
    program = parse_program("var x = d(1) + d(2);")

    class Decoder:
        name = 'd'
        arity = 1

        def __call__(self, index):
            return 'v%d' % index

    rewriter = CallSiteRewriter(program, [Decoder()])
    assert rewriter.rewrite() == 2
    assert program.render() == 'var x = "v1" + "v2";'


def test_cleanups_report_counts():
    program = parse_program("var v = 'x jsjiami.com.v7'; var a = !![], b = ![];")
    assert normalize_booleans(program) == 2
    assert strip_version_marker(program) == 1
    assert program.render() == ' var a = true, b = false;'


def test_referenced_marker_is_kept():
    program = parse_program("var v = 'jsjiami.com.v7'; use(v);")
    assert strip_version_marker(program) == 0


def test_renamed_identifiers_rewrite_the_same(simple_pool):
    renamed = simple_pool.replace('p', '_0x4f2a').replace('d(', '_0xc3e1(')
    assert 'console.log("a", "f", _0xc3e1(100));' in run(renamed)


def test_parameter_shadowing_decoder_is_left_alone(simple_pool):
    code = simple_pool + "function run(d) { return d(3); }\n"
    out = run(code)
    assert 'function run(d) { return d(3); }' in out
    assert 'console.log("a", "f", d(100));' in out


def test_local_bindings_shadowing_decoder_are_left_alone(simple_pool):
    code = simple_pool + (
        "function a() { var d = String; return d(4); }\n"
        "function b() { { let d = String; return d(5); } }\n"
        "function c() { function d(n) { return n; } return d(6); }\n"
        "var e = function d(n) { return n ? 0 : d(7); };\n"
        "try { go(); } catch (d) { d(2); }\n"
        "function outer() { return d(3); }\n"
    )
    out = run(code)
    assert 'return d(4);' in out
    assert 'return d(5);' in out
    assert 'return d(6);' in out
    assert 'return n ? 0 : d(7);' in out
    assert 'catch (d) { d(2); }' in out
    assert 'function outer() { return "b"; }' in out


def test_statement_call_site_does_not_become_a_directive(simple_pool):
    code = simple_pool + "function f() { d(2); undeclared = 1; }\n"
    assert 'function f() { ("a"); undeclared = 1; }' in run(code)

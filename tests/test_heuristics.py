import pytest

from rubber.models.review import FindingCategory
from rubber.services.heuristics import DEFAULT_RULES, RULE_NAMES, Rule, scan, select_rules

MINIMAL_PATCHES = {
    "todo_marker": " // TODO tidy up",
    "debug_output": ' dbg!(value);',
    "unwrap_call": " let v = parse(s).unwrap();",
    "expect_call": ' let f = open(p).expect("config file");',
    "panic_call": ' panic!("boom");',
    "clone_call": " let name = user.name.clone();",
    "box_allocation": " let node = Box::new(leaf);",
    "unsized_vec": " let mut items = Vec::new();",
    "mutex_lock": " let state = Mutex::new(0);",
    "sequential_await": " let pages: Vec<Page> = fetch_all().await;",
    "unsafe_block": " unsafe { read(ptr) }",
    "raw_pointer": " let p = &x as *const i32;",
    "untested_function": "+fn helper() -> u32 {",
}


def test_every_default_rule_has_a_minimal_patch():
    assert set(MINIMAL_PATCHES) == RULE_NAMES


@pytest.mark.parametrize("rule", DEFAULT_RULES, ids=lambda rule: rule.name)
def test_each_rule_fires_alone(rule):
    findings = scan(MINIMAL_PATCHES[rule.name])

    assert findings == [scan(MINIMAL_PATCHES[rule.name], [rule])[0]]
    assert findings[0].message == rule.message
    assert findings[0].category is rule.category


def test_todo_yields_hygiene_finding():
    findings = scan("+// TODO: handle overflow")

    assert [f.category for f in findings] == [FindingCategory.HYGIENE]


def test_no_markers_no_hygiene_finding():
    findings = scan("+let total = a + b;")

    assert all(f.category is not FindingCategory.HYGIENE for f in findings)


def test_unwrap_message():
    findings = scan("+let x = y.unwrap();")

    assert findings[0].message == "Replace unwrap() calls with proper error handling"
    assert findings[0].category is FindingCategory.ERROR_HANDLING


def test_findings_follow_rule_order():
    patch = "+fn load() {\n+    let v = Vec::new();\n+    println!(\"{}\", cfg.unwrap());\n+    // FIXME\n+}"

    expected = ["todo_marker", "debug_output", "unwrap_call", "unsized_vec", "untested_function"]
    messages = {rule.name: rule.message for rule in DEFAULT_RULES}

    assert [f.message for f in scan(patch)] == [messages[name] for name in expected]


def test_with_capacity_suppresses_unsized_vec():
    assert scan(" let a = Vec::new();\n let b = Vec::with_capacity(4);") == []


def test_rwlock_suppresses_mutex_finding():
    assert scan(" let a: Mutex<u8>;\n let b: RwLock<u8>;") == []


@pytest.mark.parametrize(
    "patch",
    [
        "+fn helper() {}\n+#[test]\n+fn it_works() {}",
        "+#[tokio::test]\n+async fn fetches() {}",
        "+#[cfg(test)]\n+mod tests { fn setup() {} }",
        "+fn test_parses_header() {}",
        " fn unchanged_context() {}",
    ],
)
def test_functions_with_tests_or_outside_additions_are_not_flagged(patch):
    assert all(f.category is not FindingCategory.TESTING for f in scan(patch))


@pytest.mark.parametrize(
    "line",
    ["+pub fn run() {", "+    pub(crate) async fn serve() {", "+const fn size() -> usize {"],
)
def test_new_function_variants_are_flagged(line):
    assert [f.category for f in scan(line)] == [FindingCategory.TESTING]


def test_select_rules_drops_disabled_rules_in_order():
    rules = select_rules({"unwrap_call", "panic_call"})

    assert [rule.name for rule in rules] == [
        rule.name for rule in DEFAULT_RULES if rule.name not in {"unwrap_call", "panic_call"}
    ]
    assert scan("+x.unwrap(); panic!()", rules) == []


def test_custom_rules_extend_scanner():
    rule = Rule("unsafe_transmute", lambda p: "transmute" in p, "Avoid transmute", FindingCategory.SECURITY)

    findings = scan("+let y = mem::transmute(x);", (*DEFAULT_RULES, rule))

    assert findings[-1].message == "Avoid transmute"

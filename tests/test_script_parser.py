"""Tests for the native tree-sitter script parser."""

import pytest

from plugin_profiler.parsers.javascript_parser import NativeScriptParser


def _by_type(entities, entity_type):
    return [entity for entity in entities if entity.type == entity_type]


class TestNativeScriptParser:
    """Entity extraction from JavaScript and TypeScript."""

    @pytest.fixture
    def parser(self):
        """Create parser instance."""
        return NativeScriptParser()

    def test_gutenberg_registrations(self, parser):
        """Test blocks, JS hooks and apiFetch calls."""
        source = """
import { registerBlockType } from '@wordpress/blocks';
import apiFetch from '@wordpress/api-fetch';
import './style.scss';

registerBlockType('acme/card', { edit: () => null });
wp.hooks.addFilter('acme.title', 'acme/ns', (t) => t);
addAction('acme.init', 'acme/ns', () => {});
apiFetch({ path: '/acme/v1/items', method: 'post' });
"""
        entities = parser.parse(source, "src/index.js")

        assert [entity.name for entity in _by_type(entities, "gutenberg_block")] == ["acme/card"]
        hooks = {(entity.name, entity.subtype) for entity in _by_type(entities, "js_hook")}
        assert hooks == {("acme.title", "filter"), ("acme.init", "action")}
        api = _by_type(entities, "js_api_call")
        assert len(api) == 1
        assert api[0].name == "POST /acme/v1/items"
        assert api[0].meta == {"http_method": "POST", "route": "/acme/v1/items"}
        imports = [entity.name for entity in _by_type(entities, "js_import")]
        assert imports == ["@wordpress/blocks", "@wordpress/api-fetch"]

    def test_components_functions_and_classes(self, parser):
        """Test markup-returning functions are components."""
        source = """
function Card(props) {
    return <div>{props.title}</div>;
}

const Badge = ({ label }) => <span>{label}</span>;

const Toggle = ({ on }) => {
    return on ? <b>on</b> : null;
};

const helper = (x) => x * 2;

function formatPrice(value) {
    return value.toFixed(2);
}

class Store extends Base {}
"""
        entities = parser.parse(source, "src/components.jsx")

        components = {entity.name for entity in _by_type(entities, "react_component")}
        assert components == {"Card", "Badge", "Toggle"}
        assert [entity.name for entity in _by_type(entities, "js_function")] == ["formatPrice"]
        classes = _by_type(entities, "js_class")
        assert classes[0].name == "Store"
        assert classes[0].meta["extends"] == "Base"

    def test_default_export_component(self, parser):
        """Test an anonymous default export that renders markup."""
        source = "export default function () {\n    return <p />;\n}\n"

        entities = parser.parse(source, "src/edit.js")

        assert [entity.name for entity in _by_type(entities, "react_component")] == ["(default export)"]

    def test_http_calls(self, parser):
        """Test fetch and axios call sites."""
        source = """
fetch('/wp-json/acme/v1/items');
fetch(url, { method: 'DELETE' });
axios.post('/api/save', data);
axios({ url: '/api/load', method: 'put' });
"""
        entities = parser.parse(source, "src/http.js")

        assert [entity.name for entity in _by_type(entities, "fetch_call")] == [
            "GET /wp-json/acme/v1/items",
            "DELETE (dynamic)",
        ]
        axios = _by_type(entities, "axios_call")
        assert [(entity.name, entity.subtype) for entity in axios] == [
            ("POST /api/save", "post"),
            ("PUT /api/load", "put"),
        ]

    def test_react_hooks(self, parser):
        """Test built-in, context and custom hooks."""
        source = """
function Panel() {
    const [open, setOpen] = useState(false);
    const theme = useContext(ThemeContext);
    const items = useItems();
    React.useEffect(() => {}, []);
    return <div />;
}
"""
        entities = parser.parse(source, "src/panel.jsx")

        hooks = [(entity.name, entity.subtype) for entity in _by_type(entities, "react_hook")]
        assert hooks == [
            ("useState", "useState"),
            ("useContext(ThemeContext)", "useContext"),
            ("useItems", "custom"),
            ("useEffect", "useEffect"),
        ]

    def test_typescript(self, parser):
        """Test TypeScript sources use the TypeScript grammar."""
        source = """
interface Props { title: string }
export function useTitle(props: Props): string {
    return props.title;
}
abstract class Repo<T> extends Base<T> {}
"""
        entities = parser.parse(source, "src/types.ts")

        assert [entity.name for entity in _by_type(entities, "js_function")] == ["useTitle"]
        assert [entity.name for entity in _by_type(entities, "js_class")] == ["Repo"]

    def test_broken_source_does_not_raise(self, parser):
        """Test malformed input yields whatever is recoverable."""
        entities = parser.parse("function ok() {}\nconst = = ;\n", "src/broken.js")

        assert isinstance(entities, list)

import textwrap

import pytest

from versa.errors import VersaRuntimeError, VersaTypeError
from versa.run import execute
from versa.values import HtmlValue


def last_value(source):
    return execute(textwrap.dedent(source)).elements[-1]


CARD = '''
tag Card:
    prop title: string
    prop? subtitle: string
    prop size: number = 1
    state opened = no
end
'''


def test_html_tree():
    source = '''
    var items = ["a", "b"]
    <ul#list.menu data-role="nav" hidden>
        foreach items as item:
            <li.item> {item}
        end
        if len(items) > 5: <li> "more"
    '''
    tree = last_value(source)
    assert isinstance(tree, HtmlValue)
    assert tree.to_python() == {
        'tagname': 'ul',
        'id': 'list',
        'classes': ['menu'],
        'attributes': {'data-role': 'nav', 'hidden': True},
        'children': [
            {'tagname': 'li', 'id': None, 'classes': ['item'], 'attributes': {}, 'children': ['a']},
            {'tagname': 'li', 'id': None, 'classes': ['item'], 'attributes': {}, 'children': ['b']},
        ],
    }
    assert str(tree) == '<ul#list.menu>'


def test_fragments_and_nested_lists():
    source = '''
    var nested = [["x"], none, "y"]
    <>
        <p> "a"
        {nested}
    </>
    '''
    fragment = last_value(source)
    assert fragment.tagname is None
    assert fragment.children[0].tagname == 'p'
    assert [child.to_python() for child in fragment.children[1:]] == ['x', 'y']


def test_events_must_be_functions():
    button = last_value('<button @click={func () -> 1}> "ok"')
    assert button.events[0][0] == 'click'
    with pytest.raises(VersaRuntimeError, match="The event 'click' expects a function"):
        execute('<button @click={5}> "ok"')


def test_unknown_tags():
    with pytest.raises(VersaRuntimeError, match="The tag 'blink' doesn't exist"):
        execute('<blink> "hi"')


def test_tag_props_are_checked():
    card = last_value(CARD + '<Card title="x">')
    assert card.tagname == 'Card'
    with pytest.raises(VersaRuntimeError, match="The prop 'title' of the tag 'Card' is mandatory"):
        execute(CARD + '<Card>')
    with pytest.raises(VersaTypeError):
        execute(CARD + '<Card title={1}>')
    with pytest.raises(VersaRuntimeError, match="The prop 'opened' doesn't exist"):
        execute(CARD + '<Card title="x" opened={yes}>')


def test_tag_state_and_methods():
    source = '''
    tag Counter:
        state greeting = self.hello()
        state count = 0
        method hello() -> "hi"
        method increment():
            self.count += 1
            return self.count
        end
    end
    Counter.increment()
    Counter.increment()
    [Counter.count, Counter.greeting, Counter.missing, typeof Counter]
    '''
    assert last_value(source).to_python() == [2, 'hi', None, 'tag']

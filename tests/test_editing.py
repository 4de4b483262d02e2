"""Tests for interactive post editing."""

import os
from datetime import datetime
from unittest.mock import Mock, patch

import pytest

from polyblog_pkg.editing import EditorSession, PostFile, edit_post
from polyblog_pkg.exceptions import MalformedPostFile

VALID = """---
title: Hello
version: '1'
published: true
tags:
- python
- rust
---
Some *text*.
"""


class TestPostFile:
    """Test cases for the editable post format."""

    def test_parse(self):
        """Test a complete post file."""
        edited = PostFile.parse(VALID)
        assert edited.title == 'Hello'
        assert edited.version == '1'
        assert edited.published is True
        assert edited.tags == ['python', 'rust']
        assert edited.content == 'Some *text*.\n'

    def test_dump_parses_back(self):
        """Test that the editor starts from a file it can read again."""
        original = PostFile('Hello', '2', False, ['a'], 'Body with --- dashes\n')
        edited = PostFile.parse(original.dump())
        assert vars(edited) == vars(original)

    def test_dashes_inside_values(self):
        """Test that only a line of its own closes the front matter."""
        original = PostFile('Before --- after', '1', True, ['a'], '---\nA rule above.\n')
        edited = PostFile.parse(original.dump())
        assert edited.title == 'Before --- after'
        assert edited.content == '---\nA rule above.\n'

    def test_unterminated_front_matter(self):
        with pytest.raises(MalformedPostFile, match='missing metadata'):
            PostFile.parse('---\ntitle: Hi\npublished: false\n')

    def test_missing_metadata(self):
        with pytest.raises(MalformedPostFile, match='missing metadata'):
            PostFile.parse('Just a body')

    def test_text_before_front_matter(self):
        with pytest.raises(MalformedPostFile):
            PostFile.parse('oops\n' + VALID)

    def test_invalid_yaml(self):
        with pytest.raises(MalformedPostFile, match='Invalid YAML'):
            PostFile.parse('---\ntitle: [unclosed\n---\nBody')

    def test_empty_title(self):
        with pytest.raises(MalformedPostFile, match='title'):
            PostFile.parse("---\ntitle: ''\npublished: false\n---\n")

    def test_published_must_be_bool(self):
        with pytest.raises(MalformedPostFile, match='published'):
            PostFile.parse('---\ntitle: Hi\npublished: maybe\n---\n')

    def test_invalid_tag(self):
        """Test that tags must be usable as page keys."""
        with pytest.raises(MalformedPostFile):
            PostFile.parse('---\ntitle: Hi\npublished: false\ntags: [a/b]\n---\n')

    def test_to_post_new(self):
        """Test a first save of a published post."""
        now = datetime(2021, 3, 4)
        post = PostFile.parse(VALID).to_post('hello', None, now)
        assert post.created == now
        assert post.updated == now
        assert post.published == now

    def test_to_post_keeps_creation_and_publication(self, make_post):
        """Test that editing an existing post only moves the update time."""
        existing = make_post('hello', datetime(2020, 1, 1))
        now = datetime(2021, 3, 4)
        post = PostFile.parse(VALID).to_post('hello', existing, now)
        assert post.created == datetime(2020, 1, 1)
        assert post.published == datetime(2020, 1, 1)
        assert post.updated == now

    def test_to_post_unpublish(self, make_post):
        existing = make_post('hello', datetime(2020, 1, 1))
        edited = PostFile('Hello', published=False)
        assert edited.to_post('hello', existing, datetime(2021, 1, 1)).published is None


class TestEditorSession:
    """Test cases for the editor loop."""

    def _editor_writing(self, session, *texts):
        """Fake editor run that saves each text in turn."""
        texts = list(texts)

        def run(cmd, check):
            assert cmd[-1] == session.path
            with open(session.path, 'w', encoding='utf-8') as f:
                f.write(texts.pop(0))
        return run

    def test_edit_success(self, temp_dir):
        """Test that a valid file is returned and the scratch file removed."""
        session = EditorSession(path=os.path.join(temp_dir, '.edit.md'), editor='myeditor')
        with patch('polyblog_pkg.editing.subprocess.run', side_effect=self._editor_writing(session, VALID)) as run:
            edited = session.edit('initial')
        assert edited.title == 'Hello'
        assert run.call_args[0][0] == ['myeditor', session.path]
        assert not os.path.exists(session.path)

    def test_edit_retry(self, temp_dir):
        """Test that a parse error reopens the editor."""
        prompt = Mock(return_value='')
        session = EditorSession(path=os.path.join(temp_dir, '.edit.md'), editor='ed', prompt=prompt)
        with patch('polyblog_pkg.editing.subprocess.run',
                   side_effect=self._editor_writing(session, 'broken', VALID)) as run:
            edited = session.edit('initial')
        assert edited.title == 'Hello'
        assert run.call_count == 2
        prompt.assert_called_once()

    def test_edit_abort_keeps_file(self, temp_dir):
        """Test that quitting raises and leaves the scratch file."""
        session = EditorSession(path=os.path.join(temp_dir, '.edit.md'), editor='ed',
                                prompt=Mock(return_value='q'))
        with patch('polyblog_pkg.editing.subprocess.run',
                   side_effect=self._editor_writing(session, 'broken')):
            with pytest.raises(MalformedPostFile):
                session.edit('initial')
        with open(session.path, encoding='utf-8') as f:
            assert f.read() == 'broken'

    def test_editor_from_environment(self):
        with patch.dict(os.environ, {'EDITOR': 'nano -w'}):
            assert EditorSession().editor == 'nano -w'


class TestEditPost:
    """Test cases for edit_post."""

    def test_create_post(self, store):
        """Test that a new post starts from an empty template and is saved."""
        session = Mock()
        session.edit.return_value = PostFile.parse(VALID)
        post = edit_post(store, 'hello', session, now=datetime(2021, 3, 4))
        initial = session.edit.call_args[0][0]
        assert initial.startswith('---\ntitle: \'\'\n')
        assert store.get_post('hello') == post
        assert store.tags_for_post('hello') == ['python', 'rust']

    def test_edit_existing(self, populated_store):
        """Test that the editor sees the stored post."""
        session = Mock()
        session.edit.return_value = PostFile('Renamed', '2', True, ['python'], 'New body\n')
        edit_post(populated_store, 'february', session, now=datetime(2021, 6, 1))
        initial = PostFile.parse(session.edit.call_args[0][0])
        assert initial.title == 'February'
        assert initial.tags == ['python', 'rust']
        saved = populated_store.get_post('february')
        assert saved.title == 'Renamed'
        assert saved.created == datetime(2021, 2, 1)
        assert populated_store.tags_for_post('february') == ['python']

    def test_invalid_slug(self, store):
        with pytest.raises(ValueError):
            edit_post(store, '../x', Mock())

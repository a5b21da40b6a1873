from __future__ import annotations
import threading
import time

import pytest

from conftest import make_entry
from library import Library, LockPoisoned, ReadWriteLock


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(3, timeout=5)

    def reader():
        with lock.read_locked():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    with lock.read_locked():
        inside.wait()
    for t in threads:
        t.join(timeout=5)
    assert not any(t.is_alive() for t in threads)


def test_writer_waits_for_readers():
    lock = ReadWriteLock()
    events = []
    reading = threading.Event()

    def writer():
        reading.wait(timeout=5)
        with lock.write_locked():
            events.append('write')

    t = threading.Thread(target=writer)
    t.start()
    with lock.read_locked():
        reading.set()
        time.sleep(0.05)
        events.append('read done')
    t.join(timeout=5)
    assert events == ['read done', 'write']


def test_lock_released_on_error():
    lock = ReadWriteLock()
    with pytest.raises(RuntimeError):
        with lock.read_locked():
            raise RuntimeError('reader failed')
    with lock.write_locked():
        pass
    assert not lock.poisoned


def test_failed_write_poisons_the_lock():
    lock = ReadWriteLock()
    with pytest.raises(ValueError):
        with lock.write_locked():
            raise ValueError('half-written')
    assert lock.poisoned
    with pytest.raises(LockPoisoned):
        with lock.read_locked():
            pass
    with pytest.raises(LockPoisoned):
        with lock.write_locked():
            pass


def _library(*entries):
    library = Library()
    for e in entries:
        library.insert(e)
    return library


def test_pages_by_lang_and_section():
    a = make_entry('a', date='2024-01-01')
    b = make_entry('b', date='2024-01-02', section='notes')
    fr = make_entry('a', date='2024-01-01', lang='fr')
    library = _library(a, b, fr)
    assert len(library) == 3
    assert library.pages_for_lang('en') == [a, b]
    assert library.pages_for_section('blog', 'en') == [a]
    assert library.sections('en') == ['blog', 'notes']
    assert library.pages() == [a, b, fr]


def test_translations():
    en = make_entry('post', date='2024-01-01')
    fr = make_entry('post', date='2024-01-01', lang='fr')
    other = make_entry('other', date='2024-01-01')
    library = _library(en, fr, other)
    assert library.translations_of(en) == [fr]
    assert library.translations_of(fr) == [en]
    assert library.translations_of(other) == []


def test_serialize_without_siblings():
    old = make_entry('old', date='2024-01-01')
    new = make_entry('new', date='2024-03-01')
    fr = make_entry('new', date='2024-03-01', lang='fr', title='Nouveau')
    library = _library(old, new, fr)

    data = new.serialize_without_siblings(library)
    assert 'lower' not in data and 'higher' not in data
    assert data['permalink'] == 'https://example.com/blog/new/'
    assert data['translations'] == [
        {'lang': 'fr', 'title': 'Nouveau', 'permalink': 'https://example.com/fr/blog/new/'},
    ]

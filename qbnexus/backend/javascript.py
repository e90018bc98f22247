"""JavaScript runtime scaffolding for the two emission targets.

The statement code is the same for every target; only the text around
it differs. `node` defines the runtime primitives over readline, ANSI
escapes and the fs module. `web` binds them from the host object
`window.runtime`, falling back to inert stubs for anything the host does
not provide.
"""

from __future__ import annotations

from .util import CodeBuffer

TARGET_NODE = "node"
TARGET_WEB = "web"
TARGETS: list[str] = [TARGET_NODE, TARGET_WEB]

HEADER = """\
// Generated by QBasic Nexus
'use strict';"""

NODE_RUNTIME = """\
const readline = require('readline');
const _fs = require('fs');
const rl = readline.createInterface({ input: process.stdin, output: process.stdout, terminal: false });
const _lineQueue = [];
const _lineWaiters = [];
let _stdinClosed = false;
rl.on('line', line => {
  if (_lineWaiters.length > 0) _lineWaiters.shift()(line);
  else _lineQueue.push(line);
});
rl.on('close', () => {
  _stdinClosed = true;
  while (_lineWaiters.length > 0) _lineWaiters.shift()('');
});
const _tty = Boolean(process.stdout.isTTY);

function _print(text, newline) {
  if (newline) console.log(text);
  else process.stdout.write(String(text));
}

function _input(prompt) {
  process.stdout.write(String(prompt));
  if (_lineQueue.length > 0) return Promise.resolve(_lineQueue.shift());
  if (_stdinClosed) return Promise.resolve('');
  return new Promise(resolve => _lineWaiters.push(resolve));
}

function _cls() {
  if (_tty) console.clear();
}

function _locate(row, col) {
  if (row !== undefined && row !== null) _cursorRow = row;
  if (col !== undefined && col !== null) _cursorCol = col;
  if (_tty) process.stdout.write(`\\x1b[${_cursorRow};${_cursorCol}H`);
}

const _ansiColors = [0, 4, 2, 6, 1, 5, 3, 7, 8, 12, 10, 14, 9, 13, 11, 15];
function _color(fg, bg) {
  if (!_tty) return;
  if (fg !== undefined && fg !== null && fg >= 0) process.stdout.write(`\\x1b[38;5;${_ansiColors[fg % 16]}m`);
  if (bg !== undefined && bg !== null && bg >= 0) process.stdout.write(`\\x1b[48;5;${_ansiColors[bg % 16]}m`);
}

function _sound(freq, duration) {
  const ms = Math.floor((Math.max(0, duration || 0) / 18.2) * 1000);
  if (_tty) process.stdout.write('\\x07');
  return _sleep(ms);
}

function _beep() {
  return _sound(800, 1.82);
}

function _play(commands) {
  return Promise.resolve();
}

function _screen(mode) {
  _screenMode = mode;
}

function _width(cols, rows) {
  if (cols !== undefined && cols !== null) _screenWidth = cols;
  if (rows !== undefined && rows !== null) _screenHeight = rows;
}

function _title(text) {
  if (_tty) process.stdout.write(`\\x1b]0;${text}\\x07`);
}

async function _pset(x, y, color) {}
async function _preset(x, y, color) {}
async function _line(x1, y1, x2, y2, color, box, fill) {}
async function _circle(x, y, r, color) {}
async function _get(x1, y1, x2, y2, buffer) {}
async function _put(x, y, buffer, action) {}
function _printstring(x, y, text) {
  _locate(y, x);
  _print(text, false);
}
function _putimage() {}
function _freeimage(id) {}
function _newimage(w, h, mode) { return -1; }
function _loadimage(file, mode) { return -1; }
function _copyimage(id) { return -1; }
function _mouseinput() { return 0; }
function _mousex() { return 0; }
function _mousey() { return 0; }
function _mousebutton(n) { return 0; }
function _mousewheel() { return 0; }
function _mousehide() {}
function _mouseshow(style) {}
function _keyhit() { return 0; }
function _keydown(code) { return 0; }
function _keyclear() {}
function _display() {}
function _sndopen(file, flags) { return -1; }
function _sndplay(id) {}
function _sndloop(id) {}
function _sndclose(id) {}
function _inkeyHost() { return ''; }
function _hostError(message) {}

let _lastLimitTime = Date.now();
async function _limit(fps) {
  const frame = 1000 / fps;
  const elapsed = Date.now() - _lastLimitTime;
  if (elapsed < frame) await _sleep(frame - elapsed);
  _lastLimitTime = Date.now();
}

function _vfsLoad(name) {
  try {
    return _fs.readFileSync(name, 'utf8');
  } catch (e) {
    return null;
  }
}

function _vfsSave(name, text, append) {
  if (append) _fs.appendFileSync(name, text);
  else _fs.writeFileSync(name, text);
}

const _open = async (filename, mode, filenum) => _fileOpen(filename, mode, filenum);
const _close = async filenum => _fileClose(filenum);
const _printFileFunc = async (filenum, text) => _filePrint(filenum, text);
const _inputFileFunc = async filenum => _fileInput(filenum);"""

WEB_RUNTIME = """\
const _rt = (typeof window !== 'undefined' && window.runtime) || {};
function _bind(name, fallback) {
  const fn = _rt[name];
  return typeof fn === 'function' ? fn.bind(_rt) : fallback;
}

const _print = _bind('print', (text, newline) => console.log(text));
const _input = _bind('input', prompt => Promise.resolve(typeof window !== 'undefined' && window.prompt ? window.prompt(prompt) || '' : ''));
const _cls = _bind('cls', () => {});
const _locate = _bind('locate', (row, col) => {
  if (row !== undefined && row !== null) _cursorRow = row;
  if (col !== undefined && col !== null) _cursorCol = col;
});
const _color = _bind('color', (fg, bg) => {});
const _beep = _bind('beep', async () => {});
const _sound = _bind('sound', async (freq, duration) => {});
const _play = _bind('play', async commands => {});
const _screen = _bind('screen', mode => { _screenMode = mode; });
const _width = _bind('width', (cols, rows) => {
  if (cols !== undefined && cols !== null) _screenWidth = cols;
  if (rows !== undefined && rows !== null) _screenHeight = rows;
});
const _title = _bind('title', text => {
  if (typeof document !== 'undefined') document.title = String(text);
});
const _pset = _bind('pset', async () => {});
const _preset = _bind('preset', async () => {});
const _line = _bind('line', async () => {});
const _circle = _bind('circle', async () => {});
const _get = _bind('get', async () => {});
const _put = _bind('put', async () => {});
const _printstring = _bind('printstring', () => {});
const _putimage = _bind('putimage', () => {});
const _freeimage = _bind('freeimage', () => {});
const _newimage = _bind('newimage', () => -1);
const _loadimage = _bind('loadimage', () => -1);
const _copyimage = _bind('copyimage', () => -1);
const _mouseinput = _bind('mouseinput', () => 0);
const _mousex = _bind('mousex', () => 0);
const _mousey = _bind('mousey', () => 0);
const _mousebutton = _bind('mousebutton', () => 0);
const _mousewheel = _bind('mousewheel', () => 0);
const _mousehide = _bind('mousehide', () => {});
const _mouseshow = _bind('mouseshow', () => {});
const _keyhit = _bind('keyhit', () => 0);
const _keydown = _bind('keydown', () => 0);
const _keyclear = _bind('keyclear', () => {});
const _display = _bind('display', () => {});
const _limit = _bind('limit', async fps => {});
const _sndopen = _bind('sndopen', () => -1);
const _sndplay = _bind('sndplay', () => {});
const _sndloop = _bind('sndloop', () => {});
const _sndclose = _bind('sndclose', () => {});
const _inkeyHost = _bind('inkey$', () => '');
const _hostError = _bind('error', message => {});

const _vfs = {};
function _vfsLoad(name) {
  return Object.prototype.hasOwnProperty.call(_vfs, name) ? _vfs[name] : null;
}

function _vfsSave(name, text, append) {
  _vfs[name] = (append && _vfsLoad(name) !== null ? _vfs[name] : '') + text;
}

const _open = _bind('open', async (filename, mode, filenum) => _fileOpen(filename, mode, filenum));
const _close = _bind('close', async filenum => _fileClose(filenum));
const _printFileFunc = _bind('printFile', async (filenum, text) => _filePrint(filenum, text));
const _inputFileFunc = _bind('inputFile', async filenum => _fileInput(filenum));"""

COMMON_RUNTIME = """\
function _sleep(ms) {
  return new Promise(resolve => setTimeout(resolve, Math.max(0, ms || 0)));
}

let _cursorRow = 1, _cursorCol = 1;
let _screenMode = 0;
let _screenWidth = 80, _screenHeight = 25;

function _read() {
  if (_DATA_PTR >= _DATA.length) throw new Error('Out of DATA');
  return _DATA[_DATA_PTR++];
}

function _restore() {
  _DATA_PTR = 0;
}

let _rndSeed = Date.now();
function _randomize(seed) {
  _rndSeed = seed !== undefined ? seed : Date.now();
}

function _makeArray(init, ...dims) {
  if (dims.length === 0) return typeof init === 'function' ? init() : init;
  const rest = dims.slice(1);
  return Array.from({ length: Math.max(0, Math.floor(dims[0])) + 1 }, () => _makeArray(init, ...rest));
}

function _redimPreserve(old, init, ...dims) {
  const fresh = _makeArray(init, ...dims);
  if (!Array.isArray(old)) return fresh;
  const n = Math.min(old.length, fresh.length);
  for (let i = 0; i < n; i++) {
    fresh[i] = dims.length > 1 ? _redimPreserve(old[i], init, ...dims.slice(1)) : old[i];
  }
  return fresh;
}

function _writeValue(v) {
  return typeof v === 'string' ? '"' + v + '"' : String(v);
}

let _inkeyBuffer = '';
function INKEY() {
  const host = _inkeyHost();
  if (host) return host;
  const key = _inkeyBuffer;
  _inkeyBuffer = '';
  return key;
}

const _files = {};
let _nextFileNum = 1;

function _fileOpen(filename, mode, filenum) {
  const existing = _vfsLoad(filename);
  if (mode === 'INPUT' && existing === null) throw new Error('File not found: ' + filename);
  const text = mode === 'INPUT' || mode === 'BINARY' || mode === 'RANDOM' ? existing || '' : '';
  const lines = text === '' ? [] : text.replace(/\\r\\n/g, '\\n').replace(/\\n$/, '').split('\\n');
  _files[filenum] = { filename, mode, data: lines, out: '', pos: 0, eof: lines.length === 0 };
}

function _fileClose(filenum) {
  const f = _files[filenum];
  if (!f) return;
  if (f.mode === 'OUTPUT' || f.mode === 'APPEND') _vfsSave(f.filename, f.out, f.mode === 'APPEND');
  delete _files[filenum];
}

function _filePrint(filenum, text) {
  const f = _files[filenum];
  if (!f) throw new Error('Bad file number: ' + filenum);
  f.out += text;
}

function _fileInput(filenum) {
  const f = _files[filenum];
  if (!f) throw new Error('Bad file number: ' + filenum);
  if (f.pos >= f.data.length) throw new Error('Input past end of file');
  const value = f.data[f.pos++];
  f.eof = f.pos >= f.data.length;
  return value;
}

async function _closeAll() {
  for (const n of Object.keys(_files)) await _close(Number(n));
}

function INSTR(start, str, find) {
  if (find === undefined) {
    find = str;
    str = start;
    start = 1;
  }
  const idx = String(str).indexOf(find, start - 1);
  return idx >= 0 ? idx + 1 : 0;
}

const TRUE = -1;
const FALSE = 0;"""

BODY_OPEN = """\
(async () => {
try {"""

FOOTER_CATCH = """\
} catch (e) {
  if (e === 'STOP') {
    _print('Program Stopped', true);
  } else if (e !== 'END') {
    const message = e && e.message ? e.message : String(e);
    console.error('Runtime Error:', message);
    _hostError(message);"""

NODE_EXIT_CODE = "    process.exitCode = 1;"

FOOTER_FINALLY = """\
  }
} finally {"""

NODE_FINALLY = "  rl.close();"

FOOTER_CLOSE = """\
}
})();"""


class JsTarget:
    """Preamble and postamble writer for one target."""

    def __init__(self, target: str = TARGET_NODE):
        if target not in TARGETS:
            raise ValueError("unknown target '" + target + "'")
        self.target: str = target

    def emit_preamble(self, buf: CodeBuffer, data_values: list[str]) -> None:
        buf.raw(HEADER)
        buf.line()
        if self.target == TARGET_NODE:
            buf.raw(NODE_RUNTIME)
        else:
            buf.raw(WEB_RUNTIME)
        buf.line()
        buf.line("const _DATA = [" + ", ".join(data_values) + "];")
        buf.line("let _DATA_PTR = 0;")
        buf.line()
        buf.raw(COMMON_RUNTIME)
        buf.line()
        buf.raw(BODY_OPEN)

    def emit_postamble(self, buf: CodeBuffer) -> None:
        buf.raw(FOOTER_CATCH)
        if self.target == TARGET_NODE:
            buf.line(NODE_EXIT_CODE)
        buf.raw(FOOTER_FINALLY)
        if self.target == TARGET_NODE:
            buf.line(NODE_FINALLY)
        buf.raw(FOOTER_CLOSE)

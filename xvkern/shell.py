"""Parsing shell command lines into command trees."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Union

from .params import OpenFlag

MAXARGS = 10
WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class ShellSyntaxError(ValueError):
    """A command line that cannot be parsed."""


class Token(NamedTuple):
    """A token: kind ``a`` for words, ``+`` for ``>>``, else the symbol itself."""

    kind: str
    text: str


@dataclass
class ExecCmd:
    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    cmd: "Command"
    file: str
    mode: int
    fd: int


@dataclass
class PipeCmd:
    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


class _Parser:
    def __init__(self, line: str) -> None:
        end = line.find("\0")
        self.s = line if end < 0 else line[:end]
        self.pos = 0

    def _skip(self) -> None:
        while self.pos < len(self.s) and self.s[self.pos] in WHITESPACE:
            self.pos += 1

    def at_end(self) -> bool:
        self._skip()
        return self.pos >= len(self.s)

    def peek(self, toks: str) -> bool:
        self._skip()
        return self.pos < len(self.s) and self.s[self.pos] in toks

    def gettoken(self) -> Optional[Token]:
        self._skip()
        if self.pos >= len(self.s):
            return None
        c = self.s[self.pos]
        if c in "|();&<":
            self.pos += 1
            tok = Token(c, c)
        elif c == ">":
            if self.s.startswith(">>", self.pos):
                self.pos += 2
                tok = Token("+", ">>")
            else:
                self.pos += 1
                tok = Token(">", ">")
        else:
            start = self.pos
            while (self.pos < len(self.s)
                   and self.s[self.pos] not in WHITESPACE
                   and self.s[self.pos] not in SYMBOLS):
                self.pos += 1
            tok = Token("a", self.s[start:self.pos])
        self._skip()
        return tok

    def parse_line(self) -> Command:
        cmd = self.parse_pipe()
        while self.peek("&"):
            self.gettoken()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.gettoken()
            cmd = ListCmd(cmd, self.parse_line())
        return cmd

    def parse_pipe(self) -> Command:
        cmd = self.parse_exec()
        if self.peek("|"):
            self.gettoken()
            cmd = PipeCmd(cmd, self.parse_pipe())
        return cmd

    def parse_redirs(self, cmd: Command) -> Command:
        while self.peek("<>"):
            tok = self.gettoken()
            target = self.gettoken()
            if target is None or target.kind != "a":
                raise ShellSyntaxError("missing file for redirection")
            if tok.kind == "<":
                cmd = RedirCmd(cmd, target.text, OpenFlag.RDONLY, 0)
            else:  # '>' and '>>' open the same way
                cmd = RedirCmd(cmd, target.text,
                               OpenFlag.WRONLY | OpenFlag.CREATE, 1)
        return cmd

    def parse_block(self) -> Command:
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.gettoken()
        cmd = self.parse_line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.gettoken()
        return self.parse_redirs(cmd)

    def parse_exec(self) -> Command:
        if self.peek("("):
            return self.parse_block()
        ecmd = ExecCmd()
        ret = self.parse_redirs(ecmd)
        while not self.peek("|)&;"):
            tok = self.gettoken()
            if tok is None:
                break
            if tok.kind != "a":
                raise ShellSyntaxError("syntax")
            ecmd.argv.append(tok.text)
            if len(ecmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self.parse_redirs(ret)
        return ret


def tokenize(line: str) -> list[Token]:
    """All tokens of ``line`` in order."""
    parser = _Parser(line)
    tokens = []
    while (tok := parser.gettoken()) is not None:
        tokens.append(tok)
    return tokens


def parse_command(line: str) -> Command:
    """Parse a whole command line; raises ShellSyntaxError on bad input."""
    parser = _Parser(line)
    cmd = parser.parse_line()
    if not parser.at_end():
        raise ShellSyntaxError(f"leftovers: {parser.s[parser.pos:]}")
    return cmd
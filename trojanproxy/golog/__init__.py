"""Coloured, levelled line logger with its byte buffer and ANSI colour helpers."""
"""
Core: виды значений, обёртки, примитивы gmpy2, учёт выделений, ошибки.

Модули ядра не знают о диспетчере; диспетчер (mparith.dispatch)
собирает их в операцию сложения.
"""

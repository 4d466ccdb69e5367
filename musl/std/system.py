import random
import re
from typing import List

from musl.values import Value, INT_MAX

# REGEX() stores at most this many matches in _m$[]
MAX_MATCHES = 10


def populate_system_functions(interp, rng: random.Random = None):
    """Register RANDOMIZE, RANDOM, REGEX, CALL and HALT on ``interp``."""
    if rng is None:
        rng = random.Random()

    def std_randomize(interp, args: List[Value]) -> Value:
        if args:
            rng.seed(interp.par_num(0))
        else:
            rng.seed()
        return 0

    def std_random(interp, args: List[Value]) -> Value:
        if len(args) == 0:
            return rng.randint(0, INT_MAX)
        if len(args) == 1:
            low, high = 1, interp.par_num(0)
        else:
            low, high = interp.par_num(0), interp.par_num(1)
        if high < low:
            interp.throw_error("Invalid parameters to RANDOM()")
        return rng.randint(low, high)

    def std_regex(interp, args: List[Value]) -> Value:
        pattern = interp.par_str(0)
        text = interp.par_str(1)
        try:
            match = re.search(pattern, text)
        except re.error as e:
            interp.throw_error("In REGEX(): %s", e)
        if match is None:
            return 0
        count = 0
        for i in range(min(match.re.groups + 1, MAX_MATCHES)):
            group = match.group(i)
            if group is None:
                break
            interp.set_str(f"_m$[{i}]", group)
            count += 1
        return count

    def std_call(interp, args: List[Value]) -> Value:
        if not interp.gosub(interp.par_str(0)):
            interp.throw_error(interp.error_msg)
        return 1

    def std_halt(interp, args: List[Value]) -> Value:
        interp.halt()
        return 0

    interp.add_func('randomize', std_randomize)
    interp.add_func('random', std_random)
    interp.add_func('regex', std_regex)
    interp.add_func('call', std_call)
    interp.add_func('halt', std_halt)

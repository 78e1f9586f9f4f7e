"Rebuild conversation threads from messages linked by uuid / parent_uuid."
from collections import deque

MAX_INDENT = 5


def _field(message, key):
    "Read a uuid field from a message row (dict) or record object."
    if isinstance(message, dict):
        value = message.get(key)
    else:
        value = getattr(message, key, None)
    return value or None


def _index(messages):
    "Return (uuids in first-seen order, {uuid: parent_uuid}) ignoring self-parents."
    uuids = {}
    parent_of = {}
    for msg in messages:
        uuid = _field(msg, "uuid")
        if not uuid:
            continue
        uuids[uuid] = None
        parent = _field(msg, "parent_uuid")
        if parent and parent != uuid:
            parent_of[uuid] = parent
    return list(uuids), parent_of


def _find_cycle_members(uuids, parent_of):
    known = set(uuids)
    in_cycle = set()
    # Nodes already walked without closing a cycle
    walked = set()
    for start in uuids:
        path = []
        on_path = set()
        node = start
        while node in known and node not in in_cycle and node not in walked:
            if node in on_path:
                in_cycle.update(path)
                break
            path.append(node)
            on_path.add(node)
            node = parent_of.get(node)
        else:
            walked.update(path)
    return in_cycle


def _compute_indents(uuids, parent_of, in_cycle):
    known = set(uuids)
    indents = {}
    for start in uuids:
        # Walk up until a node with a known indent or a root, then unwind.
        stack = []
        node = start
        while node not in indents:
            parent = parent_of.get(node)
            if node in in_cycle or parent not in known:
                indents[node] = 0
                break
            stack.append(node)
            node = parent
        while stack:
            node = stack.pop()
            indents[node] = min(indents[parent_of[node]] + 1, MAX_INDENT)
    return indents


def build_thread_map(messages):
    """Compute display nesting for each message that has a uuid.

    Returns {uuid: {"indent", "is_child", "parent_uuid"}}. Messages whose
    parent is missing from ``messages``, or that sit on a parent cycle, are
    treated as roots. Indent is capped at MAX_INDENT.
    """
    uuids, parent_of = _index(messages)
    known = set(uuids)
    in_cycle = _find_cycle_members(uuids, parent_of)
    indents = _compute_indents(uuids, parent_of, in_cycle)

    thread_map = {}
    for uuid in uuids:
        parent = parent_of.get(uuid)
        has_valid_parent = parent in known
        indent = indents[uuid]
        thread_map[uuid] = {
            "indent": indent,
            "is_child": has_valid_parent and indent > 0,
            "parent_uuid": parent if has_valid_parent else None,
        }
    return thread_map


def get_thread_chain(uuid, messages):
    "Return the uuid plus all its ancestors and descendants, for highlighting a thread."
    parent_of = {}
    children_of = {}
    for msg in messages:
        msg_uuid = _field(msg, "uuid")
        parent = _field(msg, "parent_uuid")
        if not msg_uuid or not parent or parent == msg_uuid:
            continue
        parent_of[msg_uuid] = parent
        children_of.setdefault(parent, []).append(msg_uuid)

    chain = set()
    current = uuid
    while current and current not in chain:
        chain.add(current)
        current = parent_of.get(current)

    seen = {uuid}
    queue = deque([uuid])
    while queue:
        node = queue.popleft()
        chain.add(node)
        for child in children_of.get(node, ()):
            if child not in seen:
                seen.add(child)
                queue.append(child)
    return chain

"""Build the sidebar project tree from flat project summaries.

Project paths are loaded into a trie keyed by path segment. The shared
prefix every project has in common (``/home/user/...``) is collapsed away,
then the trie is emitted from the first point where paths diverge:

* a directory with more than one child becomes a ``group``
* chains of single-child directories collapse into one group name (``a/b``)
* a project whose directory contains other projects is emitted next to
  them as a sibling, not as their parent
"""


class TrieNode:
    def __init__(self, segment=""):
        self.segment = segment
        self.children = {}
        self.project = None

    def only_child(self):
        return next(iter(self.children.values()))


def _segments(path):
    return [seg for seg in (path or "").split("/") if seg]


def build_trie(projects):
    """Load projects into a path trie.

    Returns (root, overflow): projects whose path was already taken by an
    earlier project go into ``overflow`` rather than being dropped.
    """
    root = TrieNode()
    overflow = []
    for project in projects:
        node = root
        for seg in _segments(project.get("path")):
            if seg not in node.children:
                node.children[seg] = TrieNode(seg)
            node = node.children[seg]
        if node.project is None:
            node.project = project
        else:
            overflow.append(project)
    return root, overflow


def project_node(project, depth):
    return {
        "type": "project",
        "name": project["name"],
        "display_name": project.get("display_name") or project["name"],
        "path": project.get("path") or "",
        "session_count": project.get("session_count", 0),
        "depth": depth,
    }


def _sort_key(node):
    return (
        node["type"] != "group",
        node["display_name"].casefold(),
        node["name"],
    )


def sort_nodes(nodes):
    "Groups first, then alphabetically by display name."
    return sorted(nodes, key=_sort_key)


def _descendant_projects(node, depth):
    "Project nodes for everything below ``node`` (not ``node`` itself), flattened."
    result = []
    stack = list(node.children.values())
    while stack:
        current = stack.pop()
        if current.project is not None:
            result.append(project_node(current.project, depth))
        stack.extend(current.children.values())
    return result


def _emit_children(parent, depth):
    result = []
    for child in parent.children.values():
        current = child
        name_parts = [child.segment]
        while len(current.children) == 1 and current.project is None:
            current = current.only_child()
            name_parts.append(current.segment)
        name = "/".join(name_parts)

        if not current.children:
            if current.project is not None:
                result.append(project_node(current.project, depth))
        elif current.project is not None:
            result.append(project_node(current.project, depth))
            result.extend(_descendant_projects(current, depth))
        else:
            children = _emit_children(current, depth + 1)
            result.append({
                "type": "group",
                "name": name,
                "display_name": name,
                "session_count": sum(c["session_count"] for c in children),
                "depth": depth,
                "children": children,
            })
    return sort_nodes(result)


def build_project_tree(projects):
    "Return a nested, sorted list of group and project nodes."
    if not projects:
        return []

    root, overflow = build_trie(projects)

    root_projects = []
    display_root = root
    while len(display_root.children) == 1:
        if display_root.project is not None:
            root_projects.append(display_root.project)
        display_root = display_root.only_child()
    if display_root.project is not None:
        root_projects.append(display_root.project)
    root_projects.extend(overflow)

    result = [project_node(p, 0) for p in root_projects]
    if display_root.children:
        result.extend(_emit_children(display_root, 0))
    return sort_nodes(result)


def build_flat_list(projects):
    "Every project as a depth-0 node, sorted by display name."
    return sort_nodes(project_node(p, 0) for p in projects)


def collect_group_names(nodes):
    "Names of every group in the tree, pre-order (for expanding all groups)."
    names = []
    for node in nodes:
        if node["type"] == "group":
            names.append(node["name"])
            names.extend(collect_group_names(node.get("children", [])))
    return names


def iter_project_nodes(nodes):
    "Yield every project node in the tree, pre-order."
    for node in nodes:
        if node["type"] == "project":
            yield node
        else:
            yield from iter_project_nodes(node.get("children", []))

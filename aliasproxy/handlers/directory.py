# Copyright 2024 The Matrix.org Foundation C.I.C.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
房间别名目录处理器

这个模块负责联邦别名查询：把收到的别名改写为目标别名，
然后通过缓存或上游主服务器解析出房间ID和服务器列表。
"""

import logging
import re
from typing import TYPE_CHECKING, Dict, List, Match, Tuple

from aliasproxy.api.errors import NotFoundError
from aliasproxy.config.aliases import AliasRule
from aliasproxy.types import JsonDict, RoomDirectoryResult

if TYPE_CHECKING:
    from aliasproxy.server import ProxyServer

logger = logging.getLogger(__name__)

# $$, ${name} or $name in a replacement template
_TEMPLATE_VARIABLE = re.compile(r"\$(?:(\$)|\{([A-Za-z0-9_]+)\}|([A-Za-z0-9_]+))")


def _group_value(match: Match[str], name: str) -> str:
    if name.isdigit() and not (name.startswith("0") and len(name) > 1):
        index = int(name)
        if index > match.re.groups:
            return ""
        return match.group(index) or ""
    if name in match.re.groupindex:
        return match.group(name) or ""
    return ""


def expand_template(match: Match[str], template: str) -> str:
    """
    用匹配结果展开替换模板

    $1 和 ${1} 引用编号分组，$name 和 ${name} 引用命名分组，$$ 表示字面量 $。
    不存在或未参与匹配的分组展开为空字符串。

    Args:
        match: 正则匹配结果
        template: 替换模板

    Returns:
        展开后的字符串
    """

    def _substitute(variable: Match[str]) -> str:
        if variable.group(1):
            return "$"
        return _group_value(match, variable.group(2) or variable.group(3))

    return _TEMPLATE_VARIABLE.sub(_substitute, template)


class AliasMapper:
    """
    别名映射器

    先查静态别名表，再按声明顺序尝试正则规则，第一个匹配的规则生效。
    """

    def __init__(self, aliases: Dict[str, str], rules: List[AliasRule]):
        self._aliases = dict(aliases)
        self._rules = list(rules)

    def map_alias(self, alias: str) -> Tuple[str, bool]:
        """
        查找别名对应的目标别名

        Args:
            alias: 收到的房间别名

        Returns:
            (目标别名, 是否找到)
        """
        target = self._aliases.get(alias)
        if target is not None:
            return target, True

        for rule in self._rules:
            if rule.pattern.search(alias):
                return (
                    rule.pattern.sub(
                        lambda m: expand_template(m, rule.replacement), alias
                    ),
                    True,
                )

        return "", False


class DirectoryHandler:
    """
    目录处理器

    组合别名映射、解析缓存和上游客户端。
    """

    def __init__(self, hs: "ProxyServer"):
        self.alias_mapper = hs.get_alias_mapper()
        self.cache = hs.get_resolution_cache()
        self.client = hs.get_directory_client()

    async def resolve_alias(self, target_alias: str) -> RoomDirectoryResult:
        """
        解析目标别名

        缓存未过期时直接返回缓存结果（包括失败结果），否则请求上游主服务器。
        上游失败时如果之前有成功的结果，则继续返回旧结果。

        Args:
            target_alias: 改写后的目标别名

        Returns:
            解析结果
        """
        cached = self.cache.get_fresh(target_alias)
        if cached is not None:
            logger.debug(f"Using cached result for {target_alias}")
            return cached.to_result()

        # 不持有缓存锁时请求上游
        result = await self.client.get_room_alias(target_alias)
        return self.cache.store(target_alias, result).to_result()

    async def on_directory_query(self, room_alias: str) -> JsonDict:
        """
        处理联邦别名查询

        Args:
            room_alias: 查询的房间别名

        Returns:
            包含 room_id 和 servers 的响应

        Raises:
            NotFoundError: 别名没有映射或解析失败
        """
        target, found = self.alias_mapper.map_alias(room_alias)
        if not found:
            raise NotFoundError(f"Room alias {room_alias} not found")

        result = await self.resolve_alias(target)
        if not result.exists:
            raise NotFoundError(f"Failed to resolve {target}")

        return result.to_json()

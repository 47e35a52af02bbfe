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
服务器密钥处理器

为配置的域名生成并签名 /_matrix/key/v2 的服务器密钥响应。
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from canonicaljson import encode_canonical_json
from unpaddedbase64 import encode_base64

from aliasproxy.config.keys import DEFAULT_IDENTITY, ServerIdentity
from aliasproxy.types import JsonDict

if TYPE_CHECKING:
    from aliasproxy.server import ProxyServer

logger = logging.getLogger(__name__)

# 服务器密钥响应的有效期：24小时
KEY_VALIDITY_PERIOD_MS = 24 * 60 * 60 * 1000


def compute_signature(document: Mapping[str, Any], identity: ServerIdentity) -> str:
    """
    计算文档的签名

    对去掉 signatures 和 unsigned 字段后的规范JSON签名。

    Args:
        document: 要签名的JSON对象
        identity: 签名身份

    Returns:
        无填充的 base64url 签名
    """
    unsigned_document = {
        k: v for k, v in document.items() if k not in ("signatures", "unsigned")
    }
    signed = identity.signing_key.sign(encode_canonical_json(unsigned_document))
    return encode_base64(signed.signature, urlsafe=True)


class KeySigner:
    """
    密钥签名器

    每个配置的域名对应一个 ed25519 身份，另外可以有一个 "default" 身份。
    """

    def __init__(self, hs: "ProxyServer"):
        self.clock = hs.get_clock()
        self._identities: Dict[str, ServerIdentity] = dict(hs.config.keys.server_keys)

    def has_identities(self) -> bool:
        return bool(self._identities)

    def get_identity(self, domain: str) -> Optional[ServerIdentity]:
        """
        查找域名的签名身份，找不到时使用 default 身份

        Args:
            domain: 请求的域名

        Returns:
            签名身份，如果都没有配置则返回None
        """
        identity = self._identities.get(domain)
        if identity is None:
            identity = self._identities.get(DEFAULT_IDENTITY)
        return identity

    def server_key_for(self, domain: str) -> Optional[JsonDict]:
        """
        生成域名的已签名服务器密钥响应

        Args:
            domain: 请求的域名

        Returns:
            已签名的密钥响应，如果没有可用身份则返回None
        """
        identity = self.get_identity(domain)
        if identity is None:
            logger.info(f"No server keys found for {domain}")
            return None

        server_name = identity.server_name or domain
        response: JsonDict = {
            "server_name": server_name,
            "valid_until_ts": self.clock.time_msec() + KEY_VALIDITY_PERIOD_MS,
            "verify_keys": {identity.key_id: {"key": identity.verify_key_base64}},
            "old_verify_keys": {},
        }
        response["signatures"] = {
            server_name: {identity.key_id: compute_signature(response, identity)}
        }
        return response

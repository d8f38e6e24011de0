from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from walletscope.container import Container
from walletscope.wallet.assembler import WalletAssembler


@inject
async def get_wallet_assembler(
    assembler: WalletAssembler = Depends(Provide[Container.wallet_assembler]),
) -> WalletAssembler:
    return assembler
